"""
In-process TTL cache for rarely changing public data
"""
import time
from typing import Any, Optional


class TTLCache:
    """
    Holds a single value for ttl_seconds.

    Per-process only: each worker keeps its own copy, so writers must call
    clear() on every change they make.
    """

    def __init__(self, ttl_seconds: int = 300):
        self.ttl_seconds = ttl_seconds
        self._value: Optional[Any] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[Any]:
        if self._stored_at is None:
            return None
        if time.time() - self._stored_at > self.ttl_seconds:
            self.clear()
            return None
        return self._value

    def set(self, value: Any) -> None:
        self._value = value
        self._stored_at = time.time()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None


# Public category list, 5 minutes
categories_cache = TTLCache(ttl_seconds=300)
