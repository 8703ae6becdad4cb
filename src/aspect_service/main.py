"""FastAPI application entry point."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is not None:
        await orchestrator.cleanup.drain()


def create_app(config: AppConfig | None = None, **overrides: object) -> FastAPI:
    """Build FastAPI instance with configured dependencies.

    ``overrides`` accepts ``downloader`` and ``store`` replacements.
    """
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    app = FastAPI(title="Aspect Ratio Service", lifespan=_lifespan)
    include_routers(app, cfg, **overrides)  # type: ignore[arg-type]
    return app


app = create_app()
