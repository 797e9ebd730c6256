from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

TASK_NAME_PREFIX = "cron:"


def decorate_name(name: str) -> str:
    """
    Namespace a task name. The decorated name is the key used for locks and results.
    """
    return TASK_NAME_PREFIX + name


class SchedulerState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    FAILED = "failed"
    STOPPED = "stopped"


class Task(BaseModel):
    """
    A periodic unit of work registered with a TaskScheduler.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Task name, unique per scheduler after decoration")
    spec: str = Field(..., description="Cron expression, 5 fields or 6 fields with seconds first")
    executor: Callable[[], Any] = Field(..., description="Zero-argument callable, sync or async, returning an optional result")
    result_capacity: int = Field(default=0, ge=0, description="How many of the latest non-None results to keep")
    should_lock: bool = Field(default=False, description="Run on at most one scheduler instance per firing")
    lock_expire: float = Field(default=60, gt=0, description="Lease duration in seconds")

    @property
    def keeps_results(self) -> bool:
        return self.result_capacity > 0

    def decorated(self) -> "Task":
        return self.model_copy(update={"name": decorate_name(self.name)})
