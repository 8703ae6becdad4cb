"""Scale-and-pad rendering of aspect ratio variants (Pillow)."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from io import BytesIO

from PIL import Image

from ..exceptions import ProcessingError
from .targets import AspectRatioClass, TargetSpec

logger = logging.getLogger(__name__)

BACKGROUND_COLOR: tuple[int, int, int] = (0, 0, 0)
OUTPUT_FORMAT = "JPEG"
OUTPUT_CONTENT_TYPE = "image/jpeg"
OUTPUT_EXTENSION = "jpg"


@dataclass(frozen=True, slots=True)
class Layout:
    """Placement of the resized source on the target canvas."""

    width: int
    height: int
    left: int
    top: int


@dataclass(frozen=True, slots=True)
class SourceImage:
    """Decoded source image flattened to RGB."""

    image: Image.Image
    width: int
    height: int
    format: str
    size_bytes: int
    has_alpha: bool


@dataclass(frozen=True, slots=True)
class ImageVariant:
    """Encoded output for one target."""

    key: str
    ratio_class: AspectRatioClass
    width: int
    height: int
    data: bytes
    path: str
    mode: str
    content_type: str = OUTPUT_CONTENT_TYPE


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_layout(
    source_width: int,
    source_height: int,
    target: TargetSpec,
    *,
    allow_enlargement: bool = True,
) -> Layout:
    """Return resized dimensions and centering offsets for ``target``.

    ``scale = min(target.width / width, target.height / height)``; with
    enlargement disabled the scale is capped at 1.
    """
    if source_width <= 0 or source_height <= 0:
        raise ProcessingError(f"invalid source dimensions {source_width}x{source_height}")
    scale = min(target.width / source_width, target.height / source_height)
    if not allow_enlargement:
        scale = min(scale, 1.0)
    width = min(target.width, max(1, _round_half_up(source_width * scale)))
    height = min(target.height, max(1, _round_half_up(source_height * scale)))
    return Layout(
        width=width,
        height=height,
        left=_round_half_up((target.width - width) / 2),
        top=_round_half_up((target.height - height) / 2),
    )


def _flatten(image: Image.Image, background: tuple[int, int, int]) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        canvas = Image.new("RGB", rgba.size, background)
        canvas.paste(rgba, mask=rgba.getchannel("A"))
        return canvas
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


@dataclass(slots=True)
class GeometryEngine:
    """Render a source image onto the exact canvas of a target.

    ``allow_enlargement`` decides whether sources smaller than the target are
    scaled up; when disabled they keep their size and are centred on the
    background instead.
    """

    allow_enlargement: bool = True
    jpeg_quality: int = 85
    background: tuple[int, int, int] = BACKGROUND_COLOR
    log: logging.Logger = field(default_factory=lambda: logger)

    def open(self, data: bytes) -> SourceImage:
        """Decode ``data`` and read its metadata."""
        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ProcessingError(f"Could not read image metadata: {exc}") from exc
        width, height = image.size
        if width <= 0 or height <= 0:
            raise ProcessingError(f"invalid source dimensions {width}x{height}")
        has_alpha = image.mode in ("RGBA", "LA") or (
            image.mode == "P" and "transparency" in image.info
        )
        return SourceImage(
            image=_flatten(image, self.background),
            width=width,
            height=height,
            format=(image.format or "unknown").lower(),
            size_bytes=len(data),
            has_alpha=has_alpha,
        )

    def render(
        self,
        source: SourceImage,
        target: TargetSpec,
        source_class: AspectRatioClass,
    ) -> tuple[Image.Image, str]:
        """Return the unencoded canvas and the policy used (``optimize``/``pad``)."""
        mode = "optimize" if source_class is target.ratio_class else "pad"
        layout = compute_layout(
            source.width,
            source.height,
            target,
            allow_enlargement=self.allow_enlargement,
        )
        try:
            if (layout.width, layout.height) == (source.width, source.height):
                resized = source.image.copy()
            else:
                resized = source.image.resize(
                    (layout.width, layout.height), Image.Resampling.LANCZOS
                )
            if (layout.width, layout.height) == target.size:
                return resized, mode
            # same-ratio sources inside the tolerance still need a few pixels of padding
            canvas = Image.new("RGB", target.size, self.background)
            canvas.paste(resized, (layout.left, layout.top))
        except (OSError, ValueError) as exc:
            raise ProcessingError(f"Image processing failed: {exc}") from exc
        return canvas, mode

    def encode(self, image: Image.Image) -> bytes:
        buffer = BytesIO()
        try:
            image.save(
                buffer,
                format=OUTPUT_FORMAT,
                quality=self.jpeg_quality,
                progressive=True,
                optimize=True,
            )
        except (OSError, ValueError) as exc:
            raise ProcessingError(f"Image encoding failed: {exc}") from exc
        return buffer.getvalue()

    def transform(
        self,
        source: SourceImage,
        target: TargetSpec,
        source_class: AspectRatioClass,
        *,
        path: str,
    ) -> ImageVariant:
        """Produce the encoded variant of ``source`` for ``target``."""
        canvas, mode = self.render(source, target, source_class)
        if canvas.size != target.size:
            raise ProcessingError(
                f"rendered {canvas.size[0]}x{canvas.size[1]}, expected {target.width}x{target.height}"
            )
        data = self.encode(canvas)
        self.log.info(
            "variant.rendered",
            extra={
                "key": target.key,
                "mode": mode,
                "source_size": f"{source.width}x{source.height}",
                "bytes": len(data),
            },
        )
        return ImageVariant(
            key=target.key,
            ratio_class=target.ratio_class,
            width=target.width,
            height=target.height,
            data=data,
            path=path,
            mode=mode,
        )


__all__ = [
    "BACKGROUND_COLOR",
    "GeometryEngine",
    "ImageVariant",
    "Layout",
    "SourceImage",
    "compute_layout",
]
