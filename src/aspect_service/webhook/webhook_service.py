"""Trigger handling: authentication, validation and job dispatch."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..exceptions import AuthError, ConfigurationError, SizeLimitError, ValidationError
from ..jobs.job_models import JobOutcome, JobRequest
from ..jobs.orchestrator import JobOrchestrator
from .payload import parse_payload
from .signature import SignatureVerifier

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-webhook-signature"
JSON_CONTENT_TYPE = "application/json"


@dataclass(slots=True)
class WebhookService:
    """Authenticate and validate a trigger, then run its job.

    Header, size, signature and payload checks fail closed before any job
    status exists.
    """

    verifier: SignatureVerifier
    orchestrator: JobOrchestrator
    max_body_bytes: int
    log: logging.Logger = field(default_factory=lambda: logger)

    def check_headers(self, headers: Mapping[str, str]) -> None:
        errors: list[str] = []
        content_type = headers.get("content-type") or ""
        if JSON_CONTENT_TYPE not in content_type.lower():
            errors.append("Missing or invalid Content-Type header")
        if not headers.get(SIGNATURE_HEADER):
            errors.append("Missing X-Webhook-Signature header")
        if errors:
            self.log.warning("webhook.headers.invalid", extra={"errors": errors})
            raise ValidationError(f"Invalid headers: {', '.join(errors)}", code="InvalidHeaders")

    def check_size(self, size: int) -> None:
        if size > self.max_body_bytes:
            self.log.warning(
                "webhook.body.too_large",
                extra={"size_bytes": size, "limit_bytes": self.max_body_bytes},
            )
            raise SizeLimitError(f"Payload too large: limit is {self.max_body_bytes} bytes")

    def authenticate(self, headers: Mapping[str, str], raw_body: bytes) -> JobRequest:
        """Run every pre-job check and return the parsed request."""
        if not self.verifier.configured:
            self.log.error("webhook.secret.missing")
            raise ConfigurationError("Server configuration error")
        self.check_headers(headers)
        self.check_size(len(raw_body))
        if not self.verifier.verify(raw_body, headers.get(SIGNATURE_HEADER)):
            self.log.warning("webhook.signature.invalid")
            raise AuthError("Invalid webhook signature")
        request = parse_payload(raw_body)
        self.log.info(
            "webhook.accepted",
            extra={"character_id": request.character_id, "image_url": request.image_url},
        )
        return request

    async def handle(self, headers: Mapping[str, str], raw_body: bytes) -> JobOutcome:
        request = self.authenticate(headers, raw_body)
        return await self.orchestrator.run(request)
