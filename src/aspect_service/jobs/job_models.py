"""Data structures for aspect ratio jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class JobStatus(StrEnum):
    """Lifecycle statuses of a job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class JobOptions:
    """Optional per-call overrides carried by the trigger."""

    timeout_ms: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class JobRequest:
    """Validated trigger parameters."""

    character_id: str
    image_url: str
    options: JobOptions = field(default_factory=JobOptions)


@dataclass(slots=True)
class JobOutcome:
    """Result of a completed job."""

    job_id: str
    character_id: str
    detected_class: str
    variant_urls: dict[str, str]
    metadata: dict[str, Any]
    processing_time_ms: int
