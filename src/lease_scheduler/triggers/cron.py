import asyncio
import logging
import uuid
from datetime import datetime, tzinfo
from typing import List, Optional, Set

import tzlocal
from croniter import croniter, CroniterBadCronError

from ..errors import InvalidScheduleError, SchedulerStateError
from .base import FiringCallback, TriggerEngine

logger = logging.getLogger(__name__)

MAX_IDLE_SECONDS = 1.0


class _CronEntry:
    def __init__(self, spec: str, expression: str, callback: FiringCallback):
        self.id: str = f"trg_{uuid.uuid4().hex[:8]}"
        self.spec = spec
        self.expression = expression
        self.callback = callback
        self.next_fire: Optional[datetime] = None

    def schedule_next(self, now: datetime) -> None:
        self.next_fire = croniter(self.expression, now, second_at_beginning=True).get_next(datetime)


class CronTriggerEngine(TriggerEngine):
    """
    asyncio dispatch loop driven by croniter.

    Accepts standard 5-field expressions and 6-field expressions with seconds first
    ("*/5 * * * * *"). "?" is accepted as "*". Ticks missed while the loop was busy
    are coalesced into a single firing.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz: tzinfo = tz or tzlocal.get_localzone()
        self._entries: List[_CronEntry] = []
        self._firings: Set[asyncio.Task] = set()
        self._dispatch_task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None
        self.is_running: bool = False

    @property
    def running(self) -> bool:
        return self.is_running

    @property
    def in_flight(self) -> int:
        return len(self._firings)

    @staticmethod
    def _normalize(spec: str) -> str:
        return " ".join(spec.split()).replace("?", "*")

    def validate(self, spec: str) -> None:
        expression = self._normalize(spec)
        fields = expression.split(" ") if expression else []
        if len(fields) not in (5, 6):
            raise InvalidScheduleError(spec, f"expected 5 or 6 fields, got {len(fields)}")
        try:
            croniter(expression, datetime.now(self.tz), second_at_beginning=True)
        except (CroniterBadCronError, ValueError, KeyError) as e:
            raise InvalidScheduleError(spec, str(e)) from e

    def add(self, spec: str, callback: FiringCallback) -> str:
        self.validate(spec)
        entry = _CronEntry(spec, self._normalize(spec), callback)
        if self.is_running:
            entry.schedule_next(datetime.now(self.tz))
        self._entries.append(entry)
        return entry.id

    async def start(self) -> None:
        """
        Start the dispatch loop on the running event loop.
        """
        if self.is_running:
            return
        if self._dispatch_task is not None:
            raise SchedulerStateError("CronTriggerEngine cannot be restarted")
        now = datetime.now(self.tz)
        for entry in self._entries:
            entry.schedule_next(now)
        self.is_running = True
        self._stopping = asyncio.Event()
        self._dispatch_task = asyncio.create_task(self._dispatch_loop(), name="cron-dispatch")
        logger.info("CronTriggerEngine started with %d entries", len(self._entries))

    async def stop(self) -> None:
        if not self.is_running:
            return
        self.is_running = False
        self._stopping.set()
        if self._dispatch_task:
            await self._dispatch_task
        logger.info("CronTriggerEngine stopped, %d firings still in flight", len(self._firings))

    async def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight firings to finish. Return True if none are left.
        """
        pending = set(self._firings)
        if pending:
            await asyncio.wait(pending, timeout=timeout)
        return not any(not f.done() for f in pending)

    async def _dispatch_loop(self) -> None:
        try:
            while self.is_running:
                now = datetime.now(self.tz)
                for entry in self._entries:
                    if entry.next_fire is not None and entry.next_fire <= now:
                        self._fire(entry)
                        entry.schedule_next(now)

                delay = self._seconds_until_next(datetime.now(self.tz))
                if delay <= 0:
                    continue
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=delay)
                    break
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Error in cron dispatch loop")
            self.is_running = False

    def _seconds_until_next(self, now: datetime) -> float:
        upcoming = [e.next_fire for e in self._entries if e.next_fire is not None]
        if not upcoming:
            return MAX_IDLE_SECONDS
        return min((min(upcoming) - now).total_seconds(), MAX_IDLE_SECONDS)

    def _fire(self, entry: _CronEntry) -> None:
        firing = asyncio.create_task(self._run(entry), name=f"cron-fire:{entry.id}")
        self._firings.add(firing)
        firing.add_done_callback(self._firings.discard)

    async def _run(self, entry: _CronEntry) -> None:
        try:
            await entry.callback()
        except Exception:
            logger.exception("Cron entry %s (%s) raised", entry.id, entry.spec)
