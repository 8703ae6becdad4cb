"""Retention of superseded variant files."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from ..exceptions import AppError, NotFoundError, StorageError
from ..media.object_store import ObjectStore, StoredObject
from ..media.variant_paths import variant_prefix
from ..repositories.character_repository import CharacterRecord

logger = logging.getLogger(__name__)

DEFAULT_RETAIN_COUNT = 3


class RecordLookup(Protocol):
    def get_by_id(self, character_id: str) -> CharacterRecord: ...


def select_stale(
    objects: Sequence[StoredObject],
    retain: int,
    protected: Collection[str] = frozenset(),
) -> list[StoredObject]:
    """Return everything but the ``retain`` newest objects.

    Names in ``protected`` are never returned, whatever their age.
    """
    ordered = sorted(objects, key=lambda obj: (obj.created_at, obj.name), reverse=True)
    return [obj for obj in ordered[max(0, retain):] if obj.name not in protected]


def referenced_names(record: CharacterRecord) -> frozenset[str]:
    """File names the record's current variant URLs point at."""
    return frozenset(url.rsplit("/", 1)[-1] for url in record.variant_urls.values() if url)


@dataclass(slots=True)
class VariantCleanup:
    """Delete old variants of a character, keeping the newest ones.

    Files referenced by the character's current variant URLs are kept even
    when they fall outside the newest ``retain``; a partially failed job can
    leave newer orphans that would otherwise push them out.

    :meth:`schedule` is fire-and-forget: it returns nothing, the task is never
    joined by the caller and its failures only reach the log.
    """

    store: ObjectStore
    retain: int = DEFAULT_RETAIN_COUNT
    records: RecordLookup | None = None
    log: logging.Logger = field(default_factory=lambda: logger)
    _tasks: set[asyncio.Task[int]] = field(default_factory=set)

    async def run(self, character_id: str, *, dry_run: bool = False) -> int:
        """Apply the retention policy now and return the number of files removed."""
        prefix = variant_prefix(character_id)
        try:
            protected = await asyncio.to_thread(self._protected, character_id)
        except AppError as exc:
            # without the current URLs nothing is known to be safe to delete
            self.log.warning(
                "variants.cleanup.lookup_failed",
                extra={"character_id": character_id, "error": exc.message},
            )
            return 0
        try:
            objects = await asyncio.to_thread(self.store.list, prefix)
        except StorageError as exc:
            self.log.warning(
                "variants.cleanup.list_failed",
                extra={"character_id": character_id, "error": str(exc)},
            )
            return 0

        stale = [
            f"{prefix}/{obj.name}" for obj in select_stale(objects, self.retain, protected)
        ]
        if not stale or dry_run:
            return len(stale)

        try:
            await asyncio.to_thread(self.store.remove, stale)
        except StorageError as exc:
            self.log.warning(
                "variants.cleanup.remove_failed",
                extra={"character_id": character_id, "error": str(exc)},
            )
            return 0
        self.log.info(
            "variants.cleanup.removed",
            extra={"character_id": character_id, "count": len(stale)},
        )
        return len(stale)

    def _protected(self, character_id: str) -> frozenset[str]:
        if self.records is None:
            return frozenset()
        try:
            record = self.records.get_by_id(character_id)
        except NotFoundError:
            return frozenset()
        return referenced_names(record)

    def schedule(self, character_id: str) -> None:
        task = asyncio.get_running_loop().create_task(
            self._run_detached(character_id),
            name=f"variant-cleanup-{character_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_detached(self, character_id: str) -> int:
        try:
            return await self.run(character_id)
        except Exception:
            self.log.exception("variants.cleanup.crashed", extra={"character_id": character_id})
            return 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for scheduled cleanups (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
