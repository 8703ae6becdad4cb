"""Canonical aspect ratio classes and their target canvases."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AspectRatioClass(StrEnum):
    SQUARE = "square"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class TargetSpec:
    """Exact output canvas for one canonical class."""

    ratio_class: AspectRatioClass
    key: str
    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


SQUARE_TARGET = TargetSpec(AspectRatioClass.SQUARE, "1x1", 1024, 1024)
LANDSCAPE_TARGET = TargetSpec(AspectRatioClass.LANDSCAPE, "16x9", 1024, 576)
PORTRAIT_TARGET = TargetSpec(AspectRatioClass.PORTRAIT, "9x16", 576, 1024)

TARGET_SPECS: tuple[TargetSpec, ...] = (SQUARE_TARGET, LANDSCAPE_TARGET, PORTRAIT_TARGET)


__all__ = [
    "AspectRatioClass",
    "TargetSpec",
    "SQUARE_TARGET",
    "LANDSCAPE_TARGET",
    "PORTRAIT_TARGET",
    "TARGET_SPECS",
]
