"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .config import AppConfig
from .health.health_api import router as health_router
from .health.health_service import HealthService
from .imaging.geometry import GeometryEngine
from .jobs.cleanup import VariantCleanup
from .jobs.orchestrator import JobOrchestrator
from .media.downloader import HttpImageDownloader, ImageDownloader
from .media.object_store import LocalObjectStore, ObjectStore
from .repositories.character_repository import CharacterRepository
from .repositories.job_repository import JobRepository
from .webhook.signature import SignatureVerifier
from .webhook.webhook_api import router as webhook_router
from .webhook.webhook_service import WebhookService


def build_orchestrator(
    config: AppConfig,
    *,
    downloader: ImageDownloader | None = None,
    store: ObjectStore | None = None,
) -> JobOrchestrator:
    """Assemble the job pipeline from explicit configuration."""
    object_store = store or LocalObjectStore(config.media_paths)
    characters = CharacterRepository(config.session_factory)
    return JobOrchestrator(
        characters=characters,
        jobs=JobRepository(config.session_factory),
        downloader=downloader or HttpImageDownloader(max_bytes=config.download.max_bytes),
        store=object_store,
        engine=GeometryEngine(
            allow_enlargement=config.variants.allow_enlargement,
            jpeg_quality=config.variants.jpeg_quality,
        ),
        cleanup=VariantCleanup(
            store=object_store,
            retain=config.variants.retain_count,
            records=characters,
        ),
        default_timeout_ms=config.download.timeout_ms,
        serialize_per_character=config.webhook.serialize_per_character,
    )


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    downloader: ImageDownloader | None = None,
    store: ObjectStore | None = None,
) -> None:
    """Mount module routers and attach services."""
    orchestrator = build_orchestrator(config, downloader=downloader, store=store)
    webhook_service = WebhookService(
        verifier=SignatureVerifier(config.webhook.secret),
        orchestrator=orchestrator,
        max_body_bytes=config.webhook.max_body_bytes,
    )
    health_service = HealthService(
        required_settings={
            "WEBHOOK_SECRET": config.webhook.secret,
            "DATABASE_URL": config.database_url,
            "MEDIA_ROOT": str(config.media_paths.root),
        },
        database_ping=CharacterRepository(config.session_factory).ping,
        media_root=config.media_paths.root,
        environment=config.environment,
    )

    app.state.config = config
    app.state.orchestrator = orchestrator
    app.state.webhook_service = webhook_service
    app.state.health_service = health_service

    app.include_router(webhook_router)
    app.include_router(health_router)

    public_base = config.media_paths.public_base_url
    if public_base.startswith("/"):
        app.mount(
            public_base,
            StaticFiles(directory=config.media_paths.root, check_dir=False),
            name="media",
        )
