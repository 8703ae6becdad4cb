"""Pipeline driving one aspect ratio job from trigger to stored variants."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from ..exceptions import AppError, InternalError, NotFoundError, StorageError
from ..imaging.classifier import classify
from ..imaging.formats import sniff_format
from ..imaging.geometry import GeometryEngine, ImageVariant, SourceImage
from ..imaging.targets import TARGET_SPECS, AspectRatioClass
from ..media.downloader import ImageDownloader
from ..media.object_store import ObjectStore
from ..media.variant_paths import MonotonicMillis, variant_path
from ..repositories.character_repository import CharacterRecord
from ..repositories.job_repository import JobRepository
from .cleanup import VariantCleanup
from .job_models import JobOutcome, JobRequest
from .status import StatusTracker

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_TIMEOUT_MS = 30_000


class RecordStore(Protocol):
    """Record store contract consumed by the orchestrator."""

    def get_by_id(self, character_id: str) -> CharacterRecord: ...

    def update_status(
        self, character_id: str, status: str, error_message: str | None = None
    ) -> None: ...

    def update_variant_urls(
        self, character_id: str, urls: Mapping[str, str], detected_class: str
    ) -> None: ...


@dataclass(slots=True)
class JobOrchestrator:
    """Run the pipeline for a validated :class:`JobRequest`.

    Steps: mark processing, verify the character, download, sniff the
    container, classify, render the three targets, upload them concurrently,
    record the URLs and mark completed. Any :class:`AppError` after the job
    exists marks it failed with ``"<Reason>: <message>"`` and is re-raised.
    A retention cleanup is scheduled once the character is known to exist,
    whatever the outcome.

    Two jobs for the same character are not serialised unless
    ``serialize_per_character`` is set; without it the URL update is
    last-write-wins.
    """

    characters: RecordStore
    jobs: JobRepository
    downloader: ImageDownloader
    store: ObjectStore
    engine: GeometryEngine
    cleanup: VariantCleanup
    default_timeout_ms: int = DEFAULT_DOWNLOAD_TIMEOUT_MS
    serialize_per_character: bool = False
    clock: Callable[[], int] = field(default_factory=MonotonicMillis)
    log: logging.Logger = field(default_factory=lambda: logger)
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)
    _lock_users: dict[str, int] = field(default_factory=dict)
    _draining: set[asyncio.Future[str]] = field(default_factory=set)

    async def run(self, request: JobRequest, *, job_id: str | None = None) -> JobOutcome:
        job_id = job_id or uuid.uuid4().hex
        with structlog.contextvars.bound_contextvars(
            job_id=job_id, character_id=request.character_id
        ):
            if not self.serialize_per_character:
                return await self._run(job_id, request)
            return await self._run_serialized(job_id, request)

    async def _run_serialized(self, job_id: str, request: JobRequest) -> JobOutcome:
        """Hold the character lock; the lock is dropped once no run holds or awaits it."""
        character_id = request.character_id
        lock = self._locks.setdefault(character_id, asyncio.Lock())
        self._lock_users[character_id] = self._lock_users.get(character_id, 0) + 1
        try:
            async with lock:
                return await self._run(job_id, request)
        finally:
            remaining = self._lock_users[character_id] - 1
            if remaining:
                self._lock_users[character_id] = remaining
            else:
                del self._lock_users[character_id]
                del self._locks[character_id]

    async def _run(self, job_id: str, request: JobRequest) -> JobOutcome:
        started = time.monotonic()
        tracker = StatusTracker.create(
            job_id=job_id,
            request=request,
            jobs=self.jobs,
            characters=self.characters,
        )
        tracker.start()

        character_exists = False
        try:
            self._verify_character(request.character_id)
            character_exists = True

            data = await self._download(request)
            source_format = sniff_format(data)
            source = await asyncio.to_thread(self.engine.open, data)
            detected = classify(source.width, source.height)
            self.log.info(
                "job.source.classified",
                extra={
                    "job_id": job_id,
                    "size": f"{source.width}x{source.height}",
                    "format": source_format,
                    "detected_class": detected.value,
                },
            )

            variants = await self._render_all(request.character_id, source, detected)
            urls = await self._upload_all(variants)

            self.characters.update_variant_urls(
                request.character_id,
                {variant.key: urls[variant.key] for variant in variants},
                detected.value,
            )
            tracker.complete(detected_class=detected.value)
        except AppError as exc:
            self._record_failure(tracker, exc)
            raise
        except Exception as exc:
            self.log.exception("job.unexpected_error", extra={"job_id": job_id})
            wrapped = InternalError(str(exc) or exc.__class__.__name__)
            self._record_failure(tracker, wrapped)
            raise wrapped from exc
        finally:
            if character_exists:
                self.cleanup.schedule(request.character_id)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.log.info(
            "job.completed",
            extra={"job_id": job_id, "duration_ms": elapsed_ms},
        )
        return JobOutcome(
            job_id=job_id,
            character_id=request.character_id,
            detected_class=detected.value,
            variant_urls={variant.ratio_class.value: urls[variant.key] for variant in variants},
            metadata=self._metadata(source, source_format, variants),
            processing_time_ms=elapsed_ms,
        )

    def _verify_character(self, character_id: str) -> None:
        try:
            self.characters.get_by_id(character_id)
        except NotFoundError as exc:
            raise NotFoundError("Character not found") from exc

    async def _download(self, request: JobRequest) -> bytes:
        timeout_ms = request.options.timeout_ms
        if timeout_ms is None:
            timeout_ms = self.default_timeout_ms
        return await self.downloader.get(request.image_url, timeout_ms)

    async def _render_all(
        self,
        character_id: str,
        source: SourceImage,
        detected: AspectRatioClass,
    ) -> list[ImageVariant]:
        timestamp = self.clock()
        variants: list[ImageVariant] = []
        for target in TARGET_SPECS:
            variant = await asyncio.to_thread(
                self.engine.transform,
                source,
                target,
                detected,
                path=variant_path(character_id, target.key, timestamp),
            )
            variants.append(variant)
        return variants

    async def _upload_all(self, variants: Sequence[ImageVariant]) -> dict[str, str]:
        """Upload concurrently; the first failure decides, the rest drain on their own."""
        tasks: dict[asyncio.Future[str], ImageVariant] = {}
        for variant in variants:
            future = asyncio.ensure_future(
                asyncio.to_thread(
                    self.store.upload, variant.data, variant.path, variant.content_type
                )
            )
            tasks[future] = variant

        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        failed = [future for future in tasks if future in done and future.exception() is not None]
        if failed:
            for future in pending:
                self._draining.add(future)
                future.add_done_callback(self._drained)
            first = failed[0]
            variant = tasks[first]
            exc = first.exception()
            self.log.error(
                "job.upload.failed",
                extra={"key": variant.key, "path": variant.path, "error": str(exc)},
            )
            if isinstance(exc, StorageError):
                raise exc
            raise StorageError(f"Upload of {variant.key} failed: {exc}") from exc

        return {tasks[future].key: future.result() for future in tasks}

    def _drained(self, future: asyncio.Future[str]) -> None:
        self._draining.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.log.warning("job.upload.drained_failure", extra={"error": str(exc)})
        else:
            self.log.info("job.upload.drained", extra={"url": future.result()})

    def _record_failure(self, tracker: StatusTracker, exc: AppError) -> None:
        try:
            tracker.fail(exc.failure_reason, exc.describe())
        except AppError:
            self.log.exception(
                "job.status.persist_failed",
                extra={"job_id": tracker.job_id, "reason": exc.failure_reason.value},
            )

    @staticmethod
    def _metadata(
        source: SourceImage,
        source_format: str,
        variants: Sequence[ImageVariant],
    ) -> dict[str, Any]:
        return {
            "originalDimensions": f"{source.width}x{source.height}",
            "originalFormat": source.format if source.format != "unknown" else source_format,
            "originalSize": source.size_bytes,
            "hasAlpha": source.has_alpha,
            "processedCount": len(variants),
            "variants": {
                variant.ratio_class.value: {
                    "key": variant.key,
                    "width": variant.width,
                    "height": variant.height,
                    "mode": variant.mode,
                    "sizeBytes": len(variant.data),
                    "path": variant.path,
                }
                for variant in variants
            },
        }
