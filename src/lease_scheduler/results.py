import threading
from collections import deque
from typing import Any, Deque, Dict, List


class _ResultRecord:
    __slots__ = ("mutex", "values")

    def __init__(self):
        self.mutex = threading.Lock()
        self.values: Deque[Any] = deque()


class ResultCache:
    """
    Per-task FIFO history of the most recent results.

    Each task name has its own lock covering the whole evict-then-append sequence,
    so concurrent firings of the same task never lose an update.
    """

    def __init__(self):
        self._records: Dict[str, _ResultRecord] = {}
        self._mutex = threading.Lock()

    def _record(self, name: str) -> _ResultRecord:
        with self._mutex:
            record = self._records.get(name)
            if record is None:
                record = self._records[name] = _ResultRecord()
            return record

    def push(self, name: str, value: Any, capacity: int) -> None:
        """
        Append value to the history of name, evicting the oldest entries so that
        the history never holds more than capacity values.
        """
        if capacity <= 0:
            return
        record = self._record(name)
        with record.mutex:
            while len(record.values) >= capacity:
                record.values.popleft()
            record.values.append(value)

    def get(self, name: str) -> List[Any]:
        """
        Snapshot of the history of name, oldest first. Empty if nothing was pushed yet.
        """
        with self._mutex:
            record = self._records.get(name)
        if record is None:
            return []
        with record.mutex:
            return list(record.values)

    def names(self) -> List[str]:
        with self._mutex:
            return list(self._records)

    def clear(self) -> None:
        with self._mutex:
            self._records.clear()

    def __len__(self) -> int:
        with self._mutex:
            return len(self._records)
