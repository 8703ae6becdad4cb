"""Job status lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from ..exceptions import FailureReason, IllegalTransitionError
from ..repositories.job_repository import JobRepository
from .job_models import JobRequest, JobStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class StatusSink(Protocol):
    """Record store side of status persistence."""

    def update_status(
        self, character_id: str, status: str, error_message: str | None = None
    ) -> None: ...


class StatusTracker:
    """Apply and persist the transitions of one job.

    Every transition writes the job row and the character status with a
    fresh timestamp. Applying a transition that is not listed in
    :data:`ALLOWED_TRANSITIONS` raises :class:`IllegalTransitionError`.
    """

    def __init__(
        self,
        *,
        job_id: str,
        request: JobRequest,
        jobs: JobRepository,
        characters: StatusSink,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.job_id = job_id
        self.request = request
        self._jobs = jobs
        self._characters = characters
        self._clock = clock
        self._status = JobStatus.PENDING
        self.error_message: str | None = None
        self.history: list[tuple[JobStatus, datetime]] = []

    @classmethod
    def create(
        cls,
        *,
        job_id: str,
        request: JobRequest,
        jobs: JobRepository,
        characters: StatusSink,
        clock: Callable[[], datetime] = _utcnow,
    ) -> "StatusTracker":
        """Persist a pending job and return its tracker."""
        tracker = cls(job_id=job_id, request=request, jobs=jobs, characters=characters, clock=clock)
        created_at = clock()
        jobs.create_pending(
            job_id=job_id,
            character_id=request.character_id,
            image_url=request.image_url,
            created_at=created_at,
        )
        tracker.history.append((JobStatus.PENDING, created_at))
        return tracker

    @property
    def status(self) -> JobStatus:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status in TERMINAL_STATUSES

    def start(self) -> None:
        self._apply(JobStatus.PROCESSING)

    def complete(self, *, detected_class: str) -> None:
        self._apply(JobStatus.COMPLETED, detected_class=detected_class)

    def fail(self, reason: FailureReason, message: str) -> None:
        self._apply(JobStatus.FAILED, failure_reason=reason, error_message=message)

    def _apply(
        self,
        target: JobStatus,
        *,
        failure_reason: FailureReason | None = None,
        error_message: str | None = None,
        detected_class: str | None = None,
    ) -> None:
        if target not in ALLOWED_TRANSITIONS[self._status]:
            raise IllegalTransitionError(
                f"job {self.job_id}: {self._status.value} -> {target.value} is not allowed"
            )
        now = self._clock()
        self._jobs.set_status(
            job_id=self.job_id,
            status=target.value,
            updated_at=now,
            terminal=target in TERMINAL_STATUSES,
            failure_reason=failure_reason.value if failure_reason else None,
            error_message=error_message,
            detected_class=detected_class,
        )
        self._characters.update_status(self.request.character_id, target.value, error_message)
        previous = self._status
        self._status = target
        self.error_message = error_message
        self.history.append((target, now))
        logger.info(
            "job.status.changed",
            extra={
                "job_id": self.job_id,
                "character_id": self.request.character_id,
                "from": previous.value,
                "to": target.value,
                "reason": failure_reason.value if failure_reason else None,
            },
        )
