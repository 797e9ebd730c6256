import asyncio
import threading
from typing import Dict, List, Optional


class RenewalHandle:
    """
    Correlates a held lock with the cancellation signal of its renewal loop.
    The signal is single use: once cancelled, the loop performs no further backend calls.
    """

    def __init__(self, name: str, token: str, ttl: float):
        self.name = name
        self.token = token
        self.ttl = ttl
        self.stopped = asyncio.Event()
        self.task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self.stopped.is_set()

    def cancel(self) -> None:
        self.stopped.set()

    def __repr__(self) -> str:
        return f"RenewalHandle(name={self.name!r}, token={self.token!r}, cancelled={self.cancelled})"


class LockRegistry:
    """
    Renewal loops currently running in this process, keyed by lock name.
    This is a local view only; it never reflects locks held by other processes.
    """

    def __init__(self):
        self._handles: Dict[str, RenewalHandle] = {}
        self._mutex = threading.Lock()

    def register(self, handle: RenewalHandle) -> None:
        """
        Track handle under its lock name. A stale handle for the same name is cancelled first.
        """
        with self._mutex:
            previous = self._handles.get(handle.name)
            self._handles[handle.name] = handle
        if previous is not None and previous is not handle:
            previous.cancel()

    def cancel(self, name: str) -> bool:
        """
        Cancel and forget the renewal loop for name. Return True if one was registered.
        """
        with self._mutex:
            handle = self._handles.pop(name, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_owned(self, name: str, token: str) -> bool:
        """
        Cancel and forget the renewal loop for name only if it renews token.
        """
        with self._mutex:
            handle = self._handles.get(name)
            if handle is None or handle.token != token:
                return False
            del self._handles[name]
        handle.cancel()
        return True

    def discard(self, handle: RenewalHandle) -> None:
        """
        Forget handle if it is still the registered one for its name.
        """
        with self._mutex:
            if self._handles.get(handle.name) is handle:
                del self._handles[handle.name]

    def get(self, name: str) -> Optional[RenewalHandle]:
        with self._mutex:
            return self._handles.get(name)

    def names(self) -> List[str]:
        with self._mutex:
            return list(self._handles)

    def cancel_all(self) -> None:
        with self._mutex:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.cancel()

    def __len__(self) -> int:
        with self._mutex:
            return len(self._handles)

    def __contains__(self, name: str) -> bool:
        with self._mutex:
            return name in self._handles
