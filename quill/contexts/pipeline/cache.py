"""
Result cache for finished resumes.

Size- and time-bounded LRU keyed by a hash of the two input texts. Only
successful results are stored; intermediate repair state is never cached.
"""

import hashlib
import os
import threading
import time
from collections import OrderedDict
from typing import Callable, Generic, Optional, TypeVar

from dotenv import load_dotenv

load_dotenv()

RESULT_CACHE_SIZE = int(os.getenv("RESULT_CACHE_SIZE", "32"))
RESULT_CACHE_TTL_S = float(os.getenv("RESULT_CACHE_TTL_S", "3600"))

V = TypeVar("V")


def cache_key(job_description: str, master_resume: str) -> str:
    """SHA-256 over both trimmed inputs."""
    digest = hashlib.sha256()
    digest.update(job_description.strip().encode("utf-8"))
    # Separator so ("ab", "c") and ("a", "bc") hash differently
    digest.update(b"\x00")
    digest.update(master_resume.strip().encode("utf-8"))
    return digest.hexdigest()


class ResultCache(Generic[V]):
    """
    Least-recently-used cache with per-entry expiry.

    Safe to share between concurrent requests; identical keys are last-write-wins.
    """

    def __init__(
        self,
        max_entries: int = RESULT_CACHE_SIZE,
        ttl_seconds: Optional[float] = RESULT_CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, tuple[float, V]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._expired(stored_at):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def put(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds
