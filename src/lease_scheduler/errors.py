class SchedulerError(Exception):
    """
    Base class for all errors raised by lease_scheduler.
    """


class SchedulerStateError(SchedulerError):
    """
    Raised when an operation is not valid in the scheduler's current state.
    """


class DuplicateTaskError(SchedulerError, ValueError):
    """
    Raised by start() when two registered tasks share a decorated name.
    """

    def __init__(self, name: str):
        super().__init__(f"{name} duplication")
        self.name = name


class InvalidScheduleError(SchedulerError, ValueError):
    """
    Raised when a schedule specification cannot be parsed by the trigger engine.
    """

    def __init__(self, spec: str, reason: str = ""):
        message = f"Invalid schedule '{spec}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.spec = spec


class LockBackendUnavailable(SchedulerError):
    """
    Raised by a lock store when the shared backend cannot be reached.
    """
