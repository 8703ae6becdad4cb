"""Image container detection from leading byte signatures."""

from __future__ import annotations

from ..exceptions import UnsupportedFormatError

_SIGNATURES: tuple[tuple[str, bytes], ...] = (
    ("jpeg", b"\xff\xd8"),
    ("png", b"\x89PNG"),
    ("webp", b"RIFF"),
    ("gif", b"GIF"),
)


def sniff_format(data: bytes) -> str:
    """Return ``jpeg``, ``png``, ``webp`` or ``gif`` for ``data``."""
    if not data:
        raise UnsupportedFormatError("Image buffer is empty")
    for name, signature in _SIGNATURES:
        if data.startswith(signature):
            if name == "webp" and len(data) >= 12 and data[8:12] != b"WEBP":
                break
            return name
    raise UnsupportedFormatError("Unrecognized image format")


__all__ = ["sniff_format"]
