"""
In-memory TTL cache of generation results, keyed by normalised topic.

The Flask server handles requests on several threads, so access is guarded
by a lock.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Optional

from poststudio.models import GenerationResult


def normalize_topic(topic: str) -> str:
    return topic.strip().lower()


class TTLCache:
    """Maps topics to results that expire *ttl_seconds* after insertion."""

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = max(1, ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[float, GenerationResult]] = {}
        self._lock = threading.Lock()

    def get(self, topic: str) -> Optional[GenerationResult]:
        key = normalize_topic(topic)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, result = entry
            if self._clock() > expires_at:
                del self._entries[key]
                return None
            return result

    def put(self, topic: str, result: GenerationResult) -> None:
        with self._lock:
            self._entries[normalize_topic(topic)] = (self._clock() + self.ttl_seconds, result)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
