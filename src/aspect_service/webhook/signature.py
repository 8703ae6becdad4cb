"""HMAC-SHA256 webhook signatures."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from hashlib import sha256

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sign_payload(payload: bytes | str, secret: str) -> str:
    """Return ``sha256=<hex>`` for ``payload`` under ``secret``."""
    digest = hmac.new(secret.encode("utf-8"), _as_bytes(payload), sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(
    payload: bytes | str | None,
    presented: str | None,
    secret: str | None,
) -> bool:
    """Check ``presented`` against the HMAC of ``payload``.

    Never raises: missing inputs and malformed hex simply fail verification.
    The digest comparison is constant time.
    """
    if not payload or not presented or not secret:
        logger.info("webhook.signature.missing_input")
        return False

    candidate = presented.strip()
    if candidate[: len(SIGNATURE_PREFIX)].lower() == SIGNATURE_PREFIX:
        candidate = candidate[len(SIGNATURE_PREFIX):]
    try:
        presented_digest = bytes.fromhex(candidate)
    except ValueError:
        logger.info("webhook.signature.malformed")
        return False

    expected = hmac.new(secret.encode("utf-8"), _as_bytes(payload), sha256).digest()
    return hmac.compare_digest(presented_digest, expected)


@dataclass(frozen=True, slots=True)
class SignatureVerifier:
    """Signature checks bound to the configured webhook secret."""

    secret: str

    @property
    def configured(self) -> bool:
        return bool(self.secret)

    def verify(self, payload: bytes | str | None, presented: str | None) -> bool:
        return verify_signature(payload, presented, self.secret)

    def sign(self, payload: bytes | str) -> str:
        return sign_payload(payload, self.secret)


__all__ = ["SIGNATURE_PREFIX", "SignatureVerifier", "sign_payload", "verify_signature"]
