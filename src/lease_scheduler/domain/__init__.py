from .task import Task, SchedulerState, decorate_name
from .lease import Lease, AcquireStatus, AcquireResult

__all__ = ["Task", "SchedulerState", "decorate_name", "Lease", "AcquireStatus", "AcquireResult"]
