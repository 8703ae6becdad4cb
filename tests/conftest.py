from __future__ import annotations

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="aspect-media-"))
os.environ.setdefault("WEBHOOK_SECRET", "test-webhook-secret")

# the app module builds its default app from the environment on import
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from src.aspect_service.main import create_app
from src.aspect_service.webhook.signature import sign_payload
from tests.helpers.images import WEBHOOK_SECRET, build_config, make_image_bytes
from tests.mocks.collaborators import FakeDownloader


@pytest.fixture
def app_config(tmp_path):
    return build_config(tmp_path)


@pytest.fixture
def fake_downloader() -> FakeDownloader:
    return FakeDownloader(payload=make_image_bytes(1920, 1080, color=(240, 240, 240)))


@pytest.fixture
def api_app(app_config, fake_downloader):
    return create_app(app_config, downloader=fake_downloader)


@pytest.fixture
def api_client(api_app):
    with TestClient(api_app) as client:
        yield client


@pytest.fixture
def characters(api_app):
    return api_app.state.orchestrator.characters


@pytest.fixture
def signed_headers() -> Callable[[bytes], dict[str, str]]:
    def _build(body: bytes, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Webhook-Signature": sign_payload(body, secret),
        }

    return _build
