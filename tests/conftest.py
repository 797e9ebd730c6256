from typing import List

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

from lease_scheduler.stores.in_memory import InMemoryLockStore
from lease_scheduler.stores.redis import RedisLockStore
from lease_scheduler.triggers.base import FiringCallback, TriggerEngine
from lease_scheduler.triggers.cron import CronTriggerEngine


class ManualTriggerEngine(TriggerEngine):
    """
    Trigger engine that only fires when the test asks it to.
    """

    def __init__(self):
        self.callbacks: List[FiringCallback] = []
        self.specs: List[str] = []
        self.is_running = False
        self._validator = CronTriggerEngine()

    @property
    def running(self) -> bool:
        return self.is_running

    def validate(self, spec: str) -> None:
        self._validator.validate(spec)

    def add(self, spec: str, callback: FiringCallback) -> str:
        self.specs.append(spec)
        self.callbacks.append(callback)
        return f"manual_{len(self.callbacks)}"

    async def start(self) -> None:
        self.is_running = True

    async def stop(self) -> None:
        self.is_running = False

    async def fire_all(self) -> None:
        for callback in self.callbacks:
            await callback()


@pytest.fixture(scope="function")
def manual_engine() -> ManualTriggerEngine:
    return ManualTriggerEngine()


@pytest.fixture(scope="function")
def memory_store() -> InMemoryLockStore:
    return InMemoryLockStore()


@pytest_asyncio.fixture(scope="function")
async def redis_client():
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture(scope="function")
def redis_store(redis_client) -> RedisLockStore:
    return RedisLockStore(redis_client)


@pytest_asyncio.fixture(scope="function", params=["memory", "redis"])
async def lock_store(request):
    if request.param == "memory":
        yield InMemoryLockStore()
        return
    client = FakeAsyncRedis(decode_responses=True)
    yield RedisLockStore(client)
    await client.flushall()
    await client.aclose()
