import asyncio
import inspect
import logging
from typing import Any, List, Optional

from .config import SchedulerConfig
from .domain.lease import AcquireStatus
from .domain.task import SchedulerState, Task, decorate_name
from .errors import DuplicateTaskError, SchedulerStateError
from .locks.lease_lock import LeaseLock
from .results import ResultCache
from .stores.protocol import LockStore
from .triggers.base import FiringCallback, TriggerEngine
from .triggers.cron import CronTriggerEngine

logger = logging.getLogger(__name__)


async def _invoke(executor) -> Any:
    if inspect.iscoroutinefunction(executor):
        return await executor()
    # blocking bodies must not stall lease renewal on the event loop
    result = await asyncio.to_thread(executor)
    if inspect.isawaitable(result):
        result = await result
    return result


class TaskScheduler:
    """
    Runs registered tasks on their cron schedules, optionally guarded by a lease lock
    so that an exclusive task runs on at most one scheduler instance per firing.

    Lifecycle: created -> running -> stopped. A stopped (or failed) instance cannot be
    started again; build a new one.
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        lock_store: Optional[LockStore] = None,
        trigger_engine: Optional[TriggerEngine] = None,
    ):
        self.config: SchedulerConfig = config or SchedulerConfig()
        self._owns_store = lock_store is None and self.config.locking_enabled
        if self._owns_store:
            lock_store = self.config.redis.create_store()
        self.lock_store: Optional[LockStore] = lock_store
        self.locker: Optional[LeaseLock] = (
            LeaseLock(lock_store, renewal_factor=self.config.renewal_factor) if lock_store is not None else None
        )
        if self.locker is None:
            logger.debug("No lock backend configured, exclusive tasks will run unguarded")
        self.trigger_engine: Optional[TriggerEngine] = trigger_engine or CronTriggerEngine(self.config.tzinfo())
        self.tasks: List[Task] = []
        self.results: ResultCache = ResultCache()
        self.state: SchedulerState = SchedulerState.CREATED
        self._count: int = 0

    async def __aenter__(self) -> "TaskScheduler":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @staticmethod
    def decorate_name(name: str) -> str:
        return decorate_name(name)

    def add_task(self, task: Task) -> None:
        """
        Register a task. Only valid before start(); names are checked for duplicates at start().
        """
        if self.state != SchedulerState.CREATED:
            raise SchedulerStateError(f"Cannot add task '{task.name}' to a {self.state.value} scheduler")
        self.tasks.append(task.decorated())

    async def start(self) -> None:
        """
        Bind every task to the trigger engine and begin dispatching.

        Raises:
            SchedulerStateError: If the scheduler was already started or stopped.
            DuplicateTaskError: If two tasks share a decorated name. Nothing is bound.
            InvalidScheduleError: If a task's cron expression is malformed. Nothing is bound.
        """
        if self.state != SchedulerState.CREATED:
            raise SchedulerStateError(f"Cannot start a {self.state.value} scheduler")
        try:
            self._check_duplicates()
            for task in self.tasks:
                self.trigger_engine.validate(task.spec)
        except ValueError:
            self.state = SchedulerState.FAILED
            raise

        for task in self.tasks:
            self.trigger_engine.add(task.spec, self._wrap(task))
            self._count += 1
        await self.trigger_engine.start()
        self.state = SchedulerState.RUNNING
        logger.info("TaskScheduler started with %d tasks", self._count)

    def _check_duplicates(self) -> None:
        names = set()
        for task in self.tasks:
            if task.name in names:
                raise DuplicateTaskError(task.name)
            names.add(task.name)

    def _wrap(self, task: Task) -> FiringCallback:
        locker = self.locker
        results = self.results

        async def run_task() -> None:
            try:
                result = await self._execute(task, locker)
            except asyncio.CancelledError:
                raise
            except BaseException:
                logger.exception("Cron task %s raised", task.name)
                return
            if result is not None and task.keeps_results:
                results.push(task.name, result, task.result_capacity)

        return run_task

    async def _execute(self, task: Task, locker: Optional[LeaseLock]) -> Any:
        if not task.should_lock or locker is None:
            return await _invoke(task.executor)

        acquisition = await locker.try_acquire(task.name, task.lock_expire)
        if acquisition.status == AcquireStatus.CONTENDED:
            logger.debug("Task %s is locked by another owner, skipping this run", task.name)
            return None
        if acquisition.status == AcquireStatus.UNAVAILABLE:
            logger.warning("Task %s skipped, lock backend unavailable", task.name)
            return None

        try:
            return await _invoke(task.executor)
        finally:
            if not await locker.release(task.name, acquisition.token):
                locker.abandon(task.name, acquisition.token)
                logger.warning("Failed to release lock %s held by %s, leaving it to expire", task.name, acquisition.token)

    def get_count(self) -> int:
        return self._count

    def get_result(self, name: str) -> List[Any]:
        """
        The retained results of a task, oldest first. name is the undecorated task name.
        """
        return self.results.get(self.decorate_name(name))

    def scan_locked_tasks(self) -> Optional[List[str]]:
        """
        Locks held and renewed by this process. None when exclusivity is disabled.
        """
        if self.locker is None:
            return None
        return self.locker.list()

    async def stop(self) -> None:
        """
        Stop dispatching, force-delete every lock this process holds and clear all state.
        In-flight task bodies are not interrupted.
        """
        if self.state == SchedulerState.STOPPED:
            return
        if self.trigger_engine is not None:
            await self.trigger_engine.stop()
        if self.locker is not None:
            for name in self.locker.list():
                if not await self.locker.delete(name):
                    logger.warning("Could not delete lock %s during shutdown", name)
            await self.locker.shutdown()
        if self._owns_store and self.lock_store is not None:
            await self.lock_store.close()

        self.tasks = []
        self.results.clear()
        self.results = ResultCache()
        self._count = 0
        self.trigger_engine = None
        self.locker = None
        self.lock_store = None
        self.state = SchedulerState.STOPPED
        logger.info("TaskScheduler stopped")
