from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AcquireStatus(str, Enum):
    ACQUIRED = "acquired"
    CONTENDED = "contended"
    UNAVAILABLE = "unavailable"


class Lease(BaseModel):
    """
    Ownership of one named lock. The token is the only credential accepted for release or renewal.
    """
    name: str = Field(..., description="Lock name, usually a decorated task name")
    token: str = Field(..., description="Opaque owner token written to the backend")
    ttl: float = Field(..., gt=0, description="Lease duration in seconds")


class AcquireResult(BaseModel):
    """
    Outcome of a single acquisition attempt.
    """
    name: str
    status: AcquireStatus
    lease: Optional[Lease] = None

    @property
    def acquired(self) -> bool:
        return self.status == AcquireStatus.ACQUIRED

    @property
    def token(self) -> str:
        return self.lease.token if self.lease else ""
