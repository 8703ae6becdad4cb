"""Trigger body validation."""

from __future__ import annotations

import json
import math
from typing import Any
from urllib.parse import urlsplit

from ..exceptions import ValidationError
from ..jobs.job_models import JobOptions, JobRequest

ENTITY_ID_FIELD = "characterId"
IMAGE_URL_FIELD = "imageUrl"
OPTIONS_FIELD = "options"


def _required_string(data: dict[str, Any], name: str) -> str:
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing {name} in payload", code=f"MissingField:{name}")
    return value.strip()


def _parse_options(raw: Any) -> JobOptions:
    if raw is None:
        return JobOptions()
    if not isinstance(raw, dict):
        raise ValidationError("options must be an object", code=f"InvalidField:{OPTIONS_FIELD}")

    timeout = raw.get("timeout")
    if timeout is not None:
        if (
            isinstance(timeout, bool)
            or not isinstance(timeout, (int, float))
            or not math.isfinite(timeout)
            or timeout <= 0
        ):
            raise ValidationError(
                "options.timeout must be a positive number of milliseconds",
                code="InvalidField:options.timeout",
            )
        # sub-millisecond values round up so they never reach the downloader as 0
        timeout = max(1, math.ceil(timeout))
    extra = {key: value for key, value in raw.items() if key != "timeout"}
    return JobOptions(timeout_ms=timeout, extra=extra)


def parse_payload(raw_body: bytes | str | None) -> JobRequest:
    """Decode the trigger body into a :class:`JobRequest`."""
    if not raw_body:
        raise ValidationError("Empty request body", code="MalformedBody")
    try:
        data = json.loads(raw_body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ValidationError("Request body is not valid JSON", code="MalformedBody") from exc
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", code="MalformedBody")

    character_id = _required_string(data, ENTITY_ID_FIELD)
    if "/" in character_id or "\\" in character_id or character_id in {".", ".."}:
        raise ValidationError(
            f"{ENTITY_ID_FIELD} must not contain path separators",
            code=f"InvalidField:{ENTITY_ID_FIELD}",
        )
    image_url = _required_string(data, IMAGE_URL_FIELD)
    parts = urlsplit(image_url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ValidationError(
            f"{IMAGE_URL_FIELD} must be an absolute http(s) URL",
            code=f"InvalidField:{IMAGE_URL_FIELD}",
        )

    return JobRequest(
        character_id=character_id,
        image_url=image_url,
        options=_parse_options(data.get(OPTIONS_FIELD)),
    )


__all__ = ["ENTITY_ID_FIELD", "IMAGE_URL_FIELD", "parse_payload"]
