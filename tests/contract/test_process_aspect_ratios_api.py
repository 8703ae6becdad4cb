"""Contract tests covering the aspect ratio webhook routes."""

from __future__ import annotations

import json

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from src.aspect_service.exceptions import DownloadError, DownloadTimeoutError
from src.aspect_service.main import create_app
from tests.helpers.images import build_config

PATH = "/api/process-aspect-ratios"


def _body(character_id: str = "char-1", **extra) -> bytes:
    payload = {"characterId": character_id, "imageUrl": "https://img.test/source.jpg", **extra}
    return json.dumps(payload).encode()


def _assert_error(response, status_code: int, code: str) -> dict:
    assert response.status_code == status_code
    payload = response.json()
    assert payload["success"] is False
    assert payload["statusCode"] == status_code
    assert payload["code"] == code
    assert payload["error"]
    assert payload["timestamp"]
    return payload


@pytest.mark.contract
def test_signed_trigger_returns_variant_urls(api_client, characters, signed_headers):
    characters.create("char-1", name="Ada")
    body = _body()

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Aspect ratios processed successfully"
    data = payload["data"]
    assert data["characterId"] == "char-1"
    assert data["detectedClass"] == "landscape"
    assert set(data["variantUrls"]) == {"square", "landscape", "portrait"}
    assert data["metadata"]["processedCount"] == 3
    assert isinstance(data["processingTimeMs"], int)
    assert data["jobId"]


@pytest.mark.contract
def test_variant_urls_are_served(api_client, characters, signed_headers):
    characters.create("char-1")
    body = _body()

    data = api_client.post(PATH, content=body, headers=signed_headers(body)).json()["data"]

    served = api_client.get(data["variantUrls"]["portrait"])
    assert served.status_code == status.HTTP_200_OK
    assert served.content[:2] == b"\xff\xd8"


@pytest.mark.contract
def test_wrong_signature_is_401(api_client, characters, signed_headers):
    characters.create("char-1")
    body = _body()

    response = api_client.post(PATH, content=body, headers=signed_headers(body, "wrong"))

    _assert_error(response, status.HTTP_401_UNAUTHORIZED, "auth")
    assert characters.get_by_id("char-1").aspect_ratio_status is None


@pytest.mark.contract
def test_missing_headers_is_400(api_client):
    response = api_client.post(PATH, content=_body())

    payload = _assert_error(response, status.HTTP_400_BAD_REQUEST, "validation")
    assert payload["error"].startswith("Invalid headers:")


@pytest.mark.contract
def test_invalid_payload_is_400(api_client, signed_headers):
    body = json.dumps({"characterId": "char-1"}).encode()

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    _assert_error(response, status.HTTP_400_BAD_REQUEST, "validation")


@pytest.mark.contract
def test_oversized_body_is_413(tmp_path, fake_downloader, signed_headers):
    config = build_config(tmp_path, max_body_bytes=32)
    body = _body(padding="x" * 100)

    with TestClient(create_app(config, downloader=fake_downloader)) as client:
        response = client.post(PATH, content=body, headers=signed_headers(body))

    _assert_error(response, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "size_limit")


@pytest.mark.contract
def test_missing_secret_is_503(tmp_path, fake_downloader, signed_headers):
    config = build_config(tmp_path, secret="")
    body = _body()

    with TestClient(create_app(config, downloader=fake_downloader)) as client:
        response = client.post(PATH, content=body, headers=signed_headers(body, "anything"))

    payload = _assert_error(response, status.HTTP_503_SERVICE_UNAVAILABLE, "configuration")
    assert payload["error"] == "Server configuration error"


@pytest.mark.contract
def test_unknown_character_is_404(api_client, signed_headers):
    body = _body("nobody")

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    payload = _assert_error(response, status.HTTP_404_NOT_FOUND, "not_found")
    assert payload["error"] == "Character not found"


@pytest.mark.contract
@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (DownloadTimeoutError("Download timed out after 10 ms"), 408, "download_timeout"),
        (DownloadError("HTTP 404: Not Found"), 502, "download"),
    ],
)
def test_download_failures_map_to_status(
    api_client, characters, fake_downloader, signed_headers, error, status_code, code
):
    characters.create("char-1")
    fake_downloader.error = error
    body = _body()

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    _assert_error(response, status_code, code)
    record = characters.get_by_id("char-1")
    assert record.aspect_ratio_status == "failed"
    assert record.aspect_ratio_error == error.describe()


@pytest.mark.contract
def test_unsupported_image_is_400(api_client, characters, fake_downloader, signed_headers):
    characters.create("char-1")
    fake_downloader.payload = b"plain text, not an image"
    body = _body()

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    _assert_error(response, status.HTTP_400_BAD_REQUEST, "validation")
    assert characters.get_by_id("char-1").aspect_ratio_error.startswith("UnsupportedFormat:")


@pytest.mark.contract
def test_undecodable_image_is_500(api_client, characters, fake_downloader, signed_headers):
    characters.create("char-1")
    fake_downloader.payload = b"\xff\xd8garbage"
    body = _body()

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    _assert_error(response, status.HTTP_500_INTERNAL_SERVER_ERROR, "processing")
    record = characters.get_by_id("char-1")
    assert record.aspect_ratio_status == "failed"
    assert record.aspect_ratio_error.startswith("ProcessingError:")


@pytest.mark.contract
def test_fractional_timeout_reaches_downloader_rounded_up(
    api_client, characters, fake_downloader, signed_headers
):
    characters.create("char-1")
    body = _body(options={"timeout": 0.5})

    response = api_client.post(PATH, content=body, headers=signed_headers(body))

    assert response.status_code == status.HTTP_200_OK
    assert [timeout for _, timeout in fake_downloader.calls] == [1]


@pytest.mark.contract
def test_preflight_returns_cors_headers(api_client):
    response = api_client.options(PATH)

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


@pytest.mark.contract
@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
def test_other_methods_are_405(api_client, method):
    response = api_client.request(method, PATH)

    payload = response.json()
    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert payload["success"] is False
    assert payload["error"] == "Method not allowed"


@pytest.mark.contract
def test_liveness_route(api_client):
    response = api_client.get("/api/test")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Aspect Ratio Service is alive!"


@pytest.mark.contract
def test_health_route_reports_checks(api_client):
    response = api_client.get("/api/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["status"] in {"healthy", "warning"}
    assert data["checks"]["database"]["status"] == "healthy"


@pytest.mark.contract
def test_health_route_is_503_without_secret(tmp_path, fake_downloader):
    config = build_config(tmp_path, secret="")

    with TestClient(create_app(config, downloader=fake_downloader)) as client:
        response = client.get("/api/health")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["data"]["checks"]["environment"]["missingVars"] == ["WEBHOOK_SECRET"]
