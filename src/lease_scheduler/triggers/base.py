from abc import ABC, abstractmethod
from typing import Awaitable, Callable

FiringCallback = Callable[[], Awaitable[None]]


class TriggerEngine(ABC):
    """
    Turns schedule specifications into periodic invocations of coroutine callbacks.
    Each firing runs as its own concurrently scheduled unit of work.
    """

    @abstractmethod
    def validate(self, spec: str) -> None:
        """
        Raise InvalidScheduleError if spec cannot be scheduled by this engine.
        """

    @abstractmethod
    def add(self, spec: str, callback: FiringCallback) -> str:
        """
        Bind callback to spec and return an entry id.
        """

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        """
        Stop dispatching new firings. Firings already in flight are left to finish.
        """

    @property
    @abstractmethod
    def running(self) -> bool:
        pass
