from .registry import LockRegistry, RenewalHandle
from .lease_lock import LeaseLock, RENEWAL_FACTOR

__all__ = ["LockRegistry", "RenewalHandle", "LeaseLock", "RENEWAL_FACTOR"]
