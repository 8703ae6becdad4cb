"""Pillow fixtures and configuration builders shared by tests."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

from PIL import Image

from src.aspect_service.config import (
    AppConfig,
    DownloadSettings,
    MediaPaths,
    VariantSettings,
    WebhookSettings,
    build_engine,
)

WEBHOOK_SECRET = "test-webhook-secret"


def make_image_bytes(
    width: int,
    height: int,
    *,
    color: tuple[int, ...] = (255, 255, 255),
    fmt: str = "JPEG",
    mode: str = "RGB",
) -> bytes:
    buffer = BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def decode(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    image.load()
    return image


def build_config(
    tmp_path: Path,
    *,
    secret: str = WEBHOOK_SECRET,
    max_body_bytes: int = 1024 * 1024,
    allow_enlargement: bool = True,
    retain_count: int = 3,
) -> AppConfig:
    engine, session_factory = build_engine("sqlite://")
    root = tmp_path / "media"
    root.mkdir(parents=True, exist_ok=True)
    return AppConfig(
        environment="test",
        media_paths=MediaPaths(root=root, public_base_url="/media"),
        webhook=WebhookSettings(secret=secret, max_body_bytes=max_body_bytes),
        download=DownloadSettings(timeout_ms=2_000, max_bytes=5 * 1024 * 1024),
        variants=VariantSettings(
            jpeg_quality=85,
            allow_enlargement=allow_enlargement,
            retain_count=retain_count,
        ),
        database_url="sqlite://",
        engine=engine,
        session_factory=session_factory,
    )
