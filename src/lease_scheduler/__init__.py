"""
Lease Scheduler

Run the same set of periodic tasks on a fleet of identical processes while
guaranteeing that an exclusive task executes on at most one of them per run.

Core Concepts:

Task:
    A named unit of work with a cron schedule, a zero-argument executor and
    a result retention capacity. Exclusive tasks also carry a lease duration.

Lease:
    A time-bounded claim on a named lock in a shared store, identified by an
    owner token. Only the token holder can release or renew it.

Renewal loop:
    A background task started for every held lease that keeps extending its
    TTL while the lease is still owned, until it is released or deleted.

Relationships:
    - A TaskScheduler owns its tasks, its result cache and one LeaseLock.
    - A LeaseLock owns a LockRegistry of the renewal loops running in this process.
"""

from .config import RedisLockConfig, SchedulerConfig
from .domain import AcquireResult, AcquireStatus, Lease, SchedulerState, Task, decorate_name
from .errors import (
    DuplicateTaskError,
    InvalidScheduleError,
    LockBackendUnavailable,
    SchedulerError,
    SchedulerStateError,
)
from .locks import LeaseLock, LockRegistry, RenewalHandle
from .results import ResultCache
from .scheduler import TaskScheduler
from .stores import InMemoryLockStore, LockStore, RedisLockStore
from .triggers import CronTriggerEngine, TriggerEngine

__all__ = [
    "TaskScheduler",
    "Task",
    "SchedulerState",
    "decorate_name",
    "Lease",
    "AcquireStatus",
    "AcquireResult",
    "LeaseLock",
    "LockRegistry",
    "RenewalHandle",
    "ResultCache",
    "LockStore",
    "InMemoryLockStore",
    "RedisLockStore",
    "TriggerEngine",
    "CronTriggerEngine",
    "SchedulerConfig",
    "RedisLockConfig",
    "SchedulerError",
    "SchedulerStateError",
    "DuplicateTaskError",
    "InvalidScheduleError",
    "LockBackendUnavailable",
]
