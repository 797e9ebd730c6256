import os
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .locks.lease_lock import RENEWAL_FACTOR
from .stores.redis import RedisLockStore

ENV_PREFIX = "LEASE_SCHEDULER_"


class RedisLockConfig(BaseModel):
    """
    Where to find the shared Redis used for task locks: either a DSN or an existing client.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    dsn: str = Field(default="", description="Redis URL, e.g. redis://localhost:6379/1")
    client: Optional[Any] = Field(default=None, description="An existing redis.asyncio.Redis client")

    def is_empty(self) -> bool:
        return self.client is None and not self.dsn

    def create_store(self) -> RedisLockStore:
        if self.client is not None:
            return RedisLockStore(self.client)
        return RedisLockStore.from_url(self.dsn)


class SchedulerConfig(BaseModel):
    """
    Construction options for TaskScheduler. Without a Redis configuration, exclusive
    tasks run on every instance.
    """
    redis: Optional[RedisLockConfig] = Field(default=None, description="Lock backend; None disables exclusivity")
    renewal_factor: float = Field(default=RENEWAL_FACTOR, gt=0, lt=1, description="Fraction of the lease TTL between renewals")
    timezone: Optional[str] = Field(default=None, description="IANA zone for cron expressions; local zone if unset")

    @field_validator("timezone")
    def check_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                ZoneInfo(v)
            except ZoneInfoNotFoundError as e:
                raise ValueError(f"Unknown timezone '{v}'") from e
        return v or None

    @property
    def locking_enabled(self) -> bool:
        return self.redis is not None and not self.redis.is_empty()

    def tzinfo(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    @classmethod
    def from_env(cls) -> "SchedulerConfig":
        """
        Build a config from LEASE_SCHEDULER_REDIS_URL, LEASE_SCHEDULER_RENEWAL_FACTOR
        and LEASE_SCHEDULER_TIMEZONE.
        """
        dsn = os.getenv(f"{ENV_PREFIX}REDIS_URL", "")
        return cls(
            redis=RedisLockConfig(dsn=dsn) if dsn else None,
            renewal_factor=float(os.getenv(f"{ENV_PREFIX}RENEWAL_FACTOR", RENEWAL_FACTOR)),
            timezone=os.getenv(f"{ENV_PREFIX}TIMEZONE") or None,
        )
