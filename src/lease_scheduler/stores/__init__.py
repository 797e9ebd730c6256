from .protocol import LockStore
from .in_memory import InMemoryLockStore
from .redis import RedisLockStore

__all__ = ["LockStore", "InMemoryLockStore", "RedisLockStore"]
