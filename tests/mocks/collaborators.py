"""In-memory collaborators for pipeline tests."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from src.aspect_service.exceptions import StorageError
from src.aspect_service.media.object_store import StoredObject


@dataclass
class FakeDownloader:
    """Return fixed bytes, or raise a configured error."""

    payload: bytes = b""
    error: Exception | None = None
    delay_seconds: float = 0.0
    calls: list[tuple[str, int]] = field(default_factory=list)

    async def get(self, url: str, timeout_ms: int) -> bytes:
        self.calls.append((url, timeout_ms))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class MemoryObjectStore:
    """Object store keeping bytes in a dict.

    ``fail_keys`` makes uploads whose path contains the key raise
    :class:`StorageError`; ``slow_seconds`` delays the other uploads so the
    failure is observed first.
    """

    base_url: str = "https://cdn.test"
    fail_keys: tuple[str, ...] = ()
    slow_seconds: float = 0.0
    fail_list: bool = False
    fail_remove: bool = False
    objects: dict[str, bytes] = field(default_factory=dict)
    created: dict[str, datetime] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def upload(self, data: bytes, path: str, content_type: str) -> str:
        if any(key in path for key in self.fail_keys):
            raise StorageError(f"Storage upload failed: simulated outage for {path}")
        if self.slow_seconds:
            threading.Event().wait(self.slow_seconds)
        with self._lock:
            if path in self.objects:
                raise StorageError(f"Storage upload failed: '{path}' already exists")
            self.objects[path] = data
            self.created[path] = datetime.now(timezone.utc)
        return f"{self.base_url}/{path}"

    def seed(self, path: str, created_at: datetime, data: bytes = b"old") -> None:
        self.objects[path] = data
        self.created[path] = created_at

    def list(self, prefix: str) -> list[StoredObject]:
        if self.fail_list:
            raise StorageError("Storage list failed: simulated")
        prefix = prefix.rstrip("/") + "/"
        with self._lock:
            snapshot = dict(self.created)
        return [
            StoredObject(name=path[len(prefix):], created_at=created_at)
            for path, created_at in snapshot.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        ]

    def remove(self, paths: Sequence[str]) -> None:
        if self.fail_remove:
            raise StorageError("Storage remove failed: simulated")
        with self._lock:
            for path in paths:
                self.objects.pop(path, None)
                self.created.pop(path, None)
                self.removed.append(path)


def ago(seconds: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(seconds=seconds)
