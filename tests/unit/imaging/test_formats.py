from __future__ import annotations

import pytest

from src.aspect_service.exceptions import FailureReason, UnsupportedFormatError
from src.aspect_service.imaging.formats import sniff_format
from tests.helpers.images import make_image_bytes


@pytest.mark.unit
@pytest.mark.parametrize(
    ("fmt", "expected"),
    [("JPEG", "jpeg"), ("PNG", "png"), ("WEBP", "webp"), ("GIF", "gif")],
)
def test_sniff_format_recognises_encoded_images(fmt, expected):
    assert sniff_format(make_image_bytes(8, 8, fmt=fmt)) == expected


@pytest.mark.unit
def test_sniff_format_rejects_other_riff_containers():
    with pytest.raises(UnsupportedFormatError):
        sniff_format(b"RIFF\x24\x00\x00\x00WAVEfmt ")


@pytest.mark.unit
@pytest.mark.parametrize("data", [b"", b"<html>nope</html>", b"%PDF-1.7"])
def test_sniff_format_rejects_unknown_bytes(data):
    with pytest.raises(UnsupportedFormatError) as excinfo:
        sniff_format(data)

    assert excinfo.value.code == "UnsupportedFormat"
    assert excinfo.value.failure_reason is FailureReason.UNSUPPORTED_FORMAT
