import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..errors import LockBackendUnavailable
from .protocol import LockStore

logger = logging.getLogger(__name__)

COMPARE_DELETE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

COMPARE_EXTEND_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("pexpire", KEYS[1], ARGV[2])
else
    return 0
end
"""


def _to_millis(ttl: float) -> int:
    return max(1, int(ttl * 1000))


class RedisLockStore(LockStore):
    """
    Lock store backed by a single Redis instance reachable by every scheduler process.
    """

    def __init__(self, client: Redis, owns_client: bool = False):
        self.client: Redis = client
        self._owns_client = owns_client
        self._compare_delete = client.register_script(COMPARE_DELETE_SCRIPT)
        self._compare_extend = client.register_script(COMPARE_EXTEND_SCRIPT)

    @classmethod
    def from_url(cls, url: str) -> "RedisLockStore":
        """
        Build a store that owns its connection pool, e.g. from "redis://localhost:6379/1".
        """
        return cls(Redis.from_url(url, decode_responses=True), owns_client=True)

    async def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        try:
            return bool(await self.client.set(key, value, nx=True, px=_to_millis(ttl)))
        except RedisError as e:
            raise LockBackendUnavailable(f"SET NX {key} failed: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
        except RedisError as e:
            raise LockBackendUnavailable(f"GET {key} failed: {e}") from e
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def compare_delete(self, key: str, expected: str) -> bool:
        try:
            return int(await self._compare_delete(keys=[key], args=[expected])) > 0
        except RedisError as e:
            raise LockBackendUnavailable(f"compare-delete {key} failed: {e}") from e

    async def compare_extend(self, key: str, expected: str, ttl: float) -> bool:
        try:
            return int(await self._compare_extend(keys=[key], args=[expected, _to_millis(ttl)])) > 0
        except RedisError as e:
            raise LockBackendUnavailable(f"compare-extend {key} failed: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return int(await self.client.delete(key)) > 0
        except RedisError as e:
            raise LockBackendUnavailable(f"DEL {key} failed: {e}") from e

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
            logger.debug("Closed Redis lock store connection")
