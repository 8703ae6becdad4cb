"""Aspect ratio classification with a fixed tolerance."""

from __future__ import annotations

from .targets import AspectRatioClass

RATIO_TOLERANCE = 0.05

# first match wins
_CANDIDATES: tuple[tuple[AspectRatioClass, float], ...] = (
    (AspectRatioClass.SQUARE, 1.0),
    (AspectRatioClass.LANDSCAPE, 16 / 9),
    (AspectRatioClass.PORTRAIT, 9 / 16),
)


def classify(width: int, height: int) -> AspectRatioClass:
    """Return the ratio class of a ``width`` x ``height`` image.

    The absolute distance between ``width / height`` and each canonical
    ratio is compared against :data:`RATIO_TOLERANCE` in the order square,
    landscape, portrait; anything else is ``other``.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"dimensions must be positive, got {width}x{height}")
    ratio = width / height
    for ratio_class, expected in _CANDIDATES:
        if abs(ratio - expected) < RATIO_TOLERANCE:
            return ratio_class
    return AspectRatioClass.OTHER


__all__ = ["RATIO_TOLERANCE", "classify"]
