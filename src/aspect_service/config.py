"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .db.db_init import init_db

DEFAULT_DATABASE_URL = "sqlite:///aspect_service.db"


@dataclass(slots=True)
class WebhookSettings:
    secret: str
    max_body_bytes: int
    serialize_per_character: bool = False


@dataclass(slots=True)
class DownloadSettings:
    timeout_ms: int
    max_bytes: int


@dataclass(slots=True)
class VariantSettings:
    jpeg_quality: int
    allow_enlargement: bool
    retain_count: int


@dataclass(slots=True)
class MediaPaths:
    root: Path
    public_base_url: str


@dataclass(slots=True)
class AppConfig:
    environment: str
    media_paths: MediaPaths
    webhook: WebhookSettings
    download: DownloadSettings
    variants: VariantSettings
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    log_level: str = "INFO"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def build_engine(database_url: str) -> tuple[Engine, sessionmaker[Session]]:
    """Create engine and session factory, creating tables on first use."""
    kwargs: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in {"sqlite://", "sqlite:///:memory:"}:
            # one shared connection, otherwise every thread sees an empty database
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, future=True, **kwargs)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)
    return engine, session_factory


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    root = Path(os.getenv("MEDIA_ROOT", "media"))
    root.mkdir(parents=True, exist_ok=True)
    media_paths = MediaPaths(
        root=root,
        public_base_url=os.getenv("PUBLIC_MEDIA_BASE_URL", "/media").rstrip("/"),
    )

    webhook = WebhookSettings(
        secret=os.getenv("WEBHOOK_SECRET", ""),
        max_body_bytes=int(os.getenv("WEBHOOK_MAX_BODY_BYTES", 10 * 1024 * 1024)),
        serialize_per_character=_env_flag("WEBHOOK_SERIALIZE_PER_CHARACTER", False),
    )
    download = DownloadSettings(
        timeout_ms=int(os.getenv("DOWNLOAD_TIMEOUT_MS", 30_000)),
        max_bytes=int(os.getenv("DOWNLOAD_MAX_BYTES", 25 * 1024 * 1024)),
    )
    variants = VariantSettings(
        jpeg_quality=int(os.getenv("VARIANT_JPEG_QUALITY", 85)),
        allow_enlargement=_env_flag("VARIANT_ALLOW_ENLARGEMENT", True),
        retain_count=int(os.getenv("VARIANT_RETAIN_COUNT", 3)),
    )

    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    engine, session_factory = build_engine(database_url)

    return AppConfig(
        environment=os.getenv("ENVIRONMENT", "development"),
        media_paths=media_paths,
        webhook=webhook,
        download=download,
        variants=variants,
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
