import threading
import time
from typing import Dict, Optional, Tuple

from .protocol import LockStore


class InMemoryLockStore(LockStore):
    """
    Process-local lock store with the same atomic semantics as the Redis store.
    WARNING: Locks are only shared between LeaseLocks in this process. Use RedisLockStore for a fleet.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._mutex = threading.Lock()

    def _live_value(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return value

    async def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        with self._mutex:
            if self._live_value(key) is not None:
                return False
            self._entries[key] = (value, time.monotonic() + ttl)
            return True

    async def get(self, key: str) -> Optional[str]:
        with self._mutex:
            return self._live_value(key)

    async def compare_delete(self, key: str, expected: str) -> bool:
        with self._mutex:
            if self._live_value(key) != expected:
                return False
            del self._entries[key]
            return True

    async def compare_extend(self, key: str, expected: str, ttl: float) -> bool:
        with self._mutex:
            if self._live_value(key) != expected:
                return False
            self._entries[key] = (expected, time.monotonic() + ttl)
            return True

    async def delete(self, key: str) -> bool:
        with self._mutex:
            if self._live_value(key) is None:
                return False
            del self._entries[key]
            return True

    async def close(self) -> None:
        with self._mutex:
            self._entries.clear()
