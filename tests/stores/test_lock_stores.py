import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from lease_scheduler.errors import LockBackendUnavailable
from lease_scheduler.stores.redis import RedisLockStore


@pytest.mark.asyncio
async def test_set_if_absent(lock_store) -> None:
    assert await lock_store.set_if_absent("key", "owner-a", 5)
    assert not await lock_store.set_if_absent("key", "owner-b", 5)
    assert await lock_store.get("key") == "owner-a"


@pytest.mark.asyncio
async def test_get_missing_key(lock_store) -> None:
    assert await lock_store.get("missing") is None


@pytest.mark.asyncio
async def test_compare_delete(lock_store) -> None:
    await lock_store.set_if_absent("key", "owner-a", 5)

    assert not await lock_store.compare_delete("key", "owner-b")
    assert await lock_store.get("key") == "owner-a"

    assert await lock_store.compare_delete("key", "owner-a")
    assert await lock_store.get("key") is None
    assert not await lock_store.compare_delete("key", "owner-a")


@pytest.mark.asyncio
async def test_compare_extend_keeps_key_alive(lock_store) -> None:
    await lock_store.set_if_absent("key", "owner-a", 0.3)
    await asyncio.sleep(0.2)
    assert await lock_store.compare_extend("key", "owner-a", 0.5)
    await asyncio.sleep(0.2)
    assert await lock_store.get("key") == "owner-a"


@pytest.mark.asyncio
async def test_compare_extend_wrong_owner(lock_store) -> None:
    await lock_store.set_if_absent("key", "owner-a", 0.3)
    assert not await lock_store.compare_extend("key", "owner-b", 10)
    await asyncio.sleep(0.4)
    assert await lock_store.get("key") is None
    assert not await lock_store.compare_extend("key", "owner-a", 10)


@pytest.mark.asyncio
async def test_expired_key_can_be_reacquired(lock_store) -> None:
    await lock_store.set_if_absent("key", "owner-a", 0.2)
    await asyncio.sleep(0.3)
    assert await lock_store.set_if_absent("key", "owner-b", 5)
    assert await lock_store.get("key") == "owner-b"


@pytest.mark.asyncio
async def test_delete(lock_store) -> None:
    await lock_store.set_if_absent("key", "owner-a", 5)
    assert await lock_store.delete("key")
    assert not await lock_store.delete("key")


@pytest.mark.asyncio
async def test_redis_ttl_is_set_in_milliseconds(redis_client, redis_store: RedisLockStore) -> None:
    await redis_store.set_if_absent("key", "owner-a", 1.5)
    assert 0 < await redis_client.pttl("key") <= 1500
    await redis_store.compare_extend("key", "owner-a", 30)
    assert await redis_client.pttl("key") > 1500


class BrokenClient:
    def register_script(self, script):
        async def run(keys=None, args=None):
            raise RedisConnectionError("connection refused")
        return run

    async def set(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def delete(self, key):
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_redis_errors_become_backend_unavailable() -> None:
    store = RedisLockStore(BrokenClient())
    with pytest.raises(LockBackendUnavailable):
        await store.set_if_absent("key", "owner", 1)
    with pytest.raises(LockBackendUnavailable):
        await store.get("key")
    with pytest.raises(LockBackendUnavailable):
        await store.compare_delete("key", "owner")
    with pytest.raises(LockBackendUnavailable):
        await store.compare_extend("key", "owner", 1)
    with pytest.raises(LockBackendUnavailable):
        await store.delete("key")
