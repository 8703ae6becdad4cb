from __future__ import annotations

import json

import pytest

from src.aspect_service.exceptions import (
    AuthError,
    ConfigurationError,
    SizeLimitError,
    ValidationError,
)
from src.aspect_service.jobs.job_models import JobOutcome, JobRequest
from src.aspect_service.webhook.signature import SignatureVerifier, sign_payload
from src.aspect_service.webhook.webhook_service import WebhookService

SECRET = "service-secret"


class _RecordingOrchestrator:
    def __init__(self) -> None:
        self.requests: list[JobRequest] = []

    async def run(self, request: JobRequest) -> JobOutcome:
        self.requests.append(request)
        return JobOutcome(
            job_id="job-1",
            character_id=request.character_id,
            detected_class="square",
            variant_urls={},
            metadata={},
            processing_time_ms=1,
        )


def _service(secret: str = SECRET, max_body_bytes: int = 4096):
    orchestrator = _RecordingOrchestrator()
    service = WebhookService(
        verifier=SignatureVerifier(secret),
        orchestrator=orchestrator,  # type: ignore[arg-type]
        max_body_bytes=max_body_bytes,
    )
    return service, orchestrator


def _signed(body: bytes, secret: str = SECRET) -> dict[str, str]:
    return {
        "content-type": "application/json",
        "x-webhook-signature": sign_payload(body, secret),
    }


BODY = json.dumps({"characterId": "c1", "imageUrl": "https://img.test/a.jpg"}).encode()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_handle_runs_job_for_authentic_trigger():
    service, orchestrator = _service()

    outcome = await service.handle(_signed(BODY), BODY)

    assert outcome.character_id == "c1"
    assert [request.image_url for request in orchestrator.requests] == ["https://img.test/a.jpg"]


@pytest.mark.unit
def test_missing_secret_is_a_configuration_error():
    service, _ = _service(secret="")

    with pytest.raises(ConfigurationError):
        service.authenticate(_signed(BODY, "anything"), BODY)


@pytest.mark.unit
def test_headers_are_checked_together():
    service, _ = _service()

    with pytest.raises(ValidationError) as excinfo:
        service.authenticate({"content-type": "text/plain"}, BODY)

    assert excinfo.value.code == "InvalidHeaders"
    assert "Content-Type" in excinfo.value.message
    assert "X-Webhook-Signature" in excinfo.value.message


@pytest.mark.unit
def test_oversized_body_is_rejected_before_signature_check():
    service, _ = _service(max_body_bytes=10)

    with pytest.raises(SizeLimitError):
        service.authenticate(_signed(BODY), BODY)


@pytest.mark.unit
def test_wrong_signature_is_rejected_before_parsing():
    service, orchestrator = _service()

    with pytest.raises(AuthError):
        service.authenticate(_signed(b"{}", "other-secret"), b"not even json")

    assert orchestrator.requests == []


@pytest.mark.unit
def test_signed_but_invalid_payload_is_a_validation_error():
    service, _ = _service()
    body = json.dumps({"characterId": "c1"}).encode()

    with pytest.raises(ValidationError) as excinfo:
        service.authenticate(_signed(body), body)

    assert excinfo.value.code == "MissingField:imageUrl"
