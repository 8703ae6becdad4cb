"""Object storage for rendered variants."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from ..config import MediaPaths
from ..exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoredObject:
    name: str
    created_at: datetime


class ObjectStore(Protocol):
    """Storage contract consumed by the job pipeline."""

    def upload(self, data: bytes, path: str, content_type: str) -> str: ...

    def list(self, prefix: str) -> list[StoredObject]: ...

    def remove(self, paths: Sequence[str]) -> None: ...


@dataclass(slots=True)
class LocalObjectStore:
    """Store objects below ``MEDIA_ROOT`` and expose them under a public base URL."""

    paths: MediaPaths
    log: logging.Logger = field(default_factory=lambda: logger)

    def _resolve(self, path: str) -> Path:
        root = self.paths.root.resolve()
        candidate = (root / path.lstrip("/")).resolve()
        if candidate != root and root not in candidate.parents:
            raise StorageError(f"path '{path}' escapes the storage root")
        return candidate

    def public_url(self, path: str) -> str:
        return f"{self.paths.public_base_url}/{path.lstrip('/')}"

    def upload(self, data: bytes, path: str, content_type: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("xb") as handle:
                handle.write(data)
        except FileExistsError as exc:
            raise StorageError(f"Storage upload failed: '{path}' already exists") from exc
        except OSError as exc:
            raise StorageError(f"Storage upload failed: {exc}") from exc
        self.log.info(
            "storage.upload.done",
            extra={"path": path, "content_type": content_type, "size_bytes": len(data)},
        )
        return self.public_url(path)

    def list(self, prefix: str) -> list[StoredObject]:
        directory = self._resolve(prefix)
        if not directory.is_dir():
            return []
        objects: list[StoredObject] = []
        try:
            for entry in directory.iterdir():
                if not entry.is_file():
                    continue
                stat = entry.stat()
                objects.append(
                    StoredObject(
                        name=entry.name,
                        created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )
        except OSError as exc:
            raise StorageError(f"Storage list failed: {exc}") from exc
        return objects

    def remove(self, paths: Sequence[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Storage remove failed: {exc}") from exc
