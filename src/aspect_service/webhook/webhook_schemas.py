"""Pydantic schemas for webhook responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..jobs.job_models import JobOutcome


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VariantUrls(BaseModel):
    model_config = ConfigDict(extra="forbid")

    square: str
    landscape: str
    portrait: str


class ProcessResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    character_id: str = Field(..., alias="characterId")
    detected_class: str = Field(..., alias="detectedClass")
    variant_urls: VariantUrls = Field(..., alias="variantUrls")
    metadata: dict[str, Any] = Field(default_factory=dict)
    processing_time_ms: int = Field(..., alias="processingTimeMs")

    @classmethod
    def from_outcome(cls, outcome: JobOutcome) -> "ProcessResult":
        return cls(
            job_id=outcome.job_id,
            character_id=outcome.character_id,
            detected_class=outcome.detected_class,
            variant_urls=VariantUrls(**outcome.variant_urls),
            metadata=outcome.metadata,
            processing_time_ms=outcome.processing_time_ms,
        )


class SuccessEnvelope(BaseModel):
    success: Literal[True] = True
    message: str
    data: Any = None
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[False] = False
    error: str
    code: str | None = None
    status_code: int = Field(..., alias="statusCode")
    timestamp: datetime = Field(default_factory=_utcnow)
