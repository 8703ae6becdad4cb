"""Storage paths of aspect ratio variants."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from ..imaging.geometry import OUTPUT_EXTENSION


def variant_prefix(character_id: str) -> str:
    return f"characters/{character_id}/aspect-ratios"


def variant_path(character_id: str, key: str, timestamp_ms: int) -> str:
    return f"{variant_prefix(character_id)}/{key}-{timestamp_ms}.{OUTPUT_EXTENSION}"


class MonotonicMillis:
    """Wall clock in milliseconds that never repeats or goes backwards."""

    def __init__(self, time_source: Callable[[], float] = time.time) -> None:
        self._time_source = time_source
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = int(self._time_source() * 1000)
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now
