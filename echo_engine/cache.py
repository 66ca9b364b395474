import asyncio
import time
from typing import Any, Callable, Dict, Optional


class TTLCache:
    """Small async-safe cache whose entries carry their own max age."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        # key -> (value, stored_at)
        self._store: Dict[str, tuple[Any, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def get(self, key: str, max_age_seconds: float) -> Optional[Any]:
        """Return the cached value if it is younger than ``max_age_seconds``."""

        if max_age_seconds <= 0:
            return None
        now = self._clock()
        async with self._lock:
            item = self._store.get(key)
            if not item:
                return None
            value, stored_at = item
            if now - stored_at > max_age_seconds:
                self._store.pop(key, None)
                return None
            return value

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._store[key] = (value, self._clock())

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()
