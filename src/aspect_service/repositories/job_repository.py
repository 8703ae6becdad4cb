"""Persistence layer for aspect ratio job runs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from ..db.db_models import AspectRatioJobModel
from ..exceptions import handle_sqlalchemy_errors


@dataclass(slots=True)
class JobRecord:
    """Lightweight view of a job row."""

    job_id: str
    character_id: str
    image_url: str
    status: str
    failure_reason: str | None
    error_message: str | None
    detected_class: str | None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None


class JobRepository:
    """Manage aspect_ratio_jobs records."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_pending(
        self,
        *,
        job_id: str,
        character_id: str,
        image_url: str,
        created_at: datetime,
    ) -> None:
        with handle_sqlalchemy_errors(entity="job"), self._session_factory() as session:
            session.add(
                AspectRatioJobModel(
                    job_id=job_id,
                    character_id=character_id,
                    image_url=image_url,
                    status="pending",
                    created_at=created_at,
                    updated_at=created_at,
                )
            )
            session.commit()

    def set_status(
        self,
        *,
        job_id: str,
        status: str,
        updated_at: datetime,
        terminal: bool = False,
        failure_reason: str | None = None,
        error_message: str | None = None,
        detected_class: str | None = None,
    ) -> None:
        with handle_sqlalchemy_errors(entity="job"), self._session_factory() as session:
            model = session.get(AspectRatioJobModel, job_id)
            if model is None:
                raise KeyError(f"Job '{job_id}' not found")
            model.status = status
            model.updated_at = updated_at
            if failure_reason is not None:
                model.failure_reason = failure_reason
                model.error_message = error_message
            if detected_class is not None:
                model.detected_class = detected_class
            if terminal:
                model.completed_at = updated_at
            session.commit()

    def get_job(self, job_id: str) -> JobRecord:
        with handle_sqlalchemy_errors(entity="job"), self._session_factory() as session:
            model = session.get(AspectRatioJobModel, job_id)
            if model is None:
                raise KeyError(f"Job '{job_id}' not found")
            return _to_record(model)

    def list_for_character(self, character_id: str) -> list[JobRecord]:
        with handle_sqlalchemy_errors(entity="job"), self._session_factory() as session:
            models = (
                session.query(AspectRatioJobModel)
                .filter(AspectRatioJobModel.character_id == character_id)
                .order_by(AspectRatioJobModel.created_at.asc())
                .all()
            )
            return [_to_record(model) for model in models]


def _to_record(model: AspectRatioJobModel) -> JobRecord:
    return JobRecord(
        job_id=model.job_id,
        character_id=model.character_id,
        image_url=model.image_url,
        status=model.status,
        failure_reason=model.failure_reason,
        error_message=model.error_message,
        detected_class=model.detected_class,
        created_at=model.created_at,
        updated_at=model.updated_at,
        completed_at=model.completed_at,
    )
