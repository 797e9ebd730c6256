import asyncio
import logging
from typing import Callable, List, Optional, Set, Tuple

from ..domain.lease import AcquireResult, AcquireStatus, Lease
from ..errors import LockBackendUnavailable
from ..identity import owner_token
from ..stores.protocol import LockStore
from .registry import LockRegistry, RenewalHandle

logger = logging.getLogger(__name__)

RENEWAL_FACTOR = 0.8


class LeaseLock:
    """
    Distributed mutex built on a LockStore.

    A successful acquire writes a fresh owner token with a TTL and starts a renewal
    loop (the watchdog) that keeps extending the TTL while the token is still the
    stored value. release() and delete() stop that loop. The loop itself never
    releases: if the lease is lost it stops quietly and leaves the key alone.
    """

    def __init__(
        self,
        store: LockStore,
        registry: Optional[LockRegistry] = None,
        renewal_factor: float = RENEWAL_FACTOR,
        token_factory: Callable[[], str] = owner_token,
    ):
        if not 0 < renewal_factor < 1:
            raise ValueError("renewal_factor must be between 0 and 1")
        self.store: LockStore = store
        self.registry: LockRegistry = registry if registry is not None else LockRegistry()
        self.renewal_factor = renewal_factor
        self._token_factory = token_factory
        self._renewals: Set[asyncio.Task] = set()

    async def try_acquire(self, name: str, ttl: float) -> AcquireResult:
        """
        Attempt to take the lock and report why it failed, if it did.

        Args:
            name (str): The lock name.
            ttl (float): Lease duration in seconds.

        Returns:
            AcquireResult: ACQUIRED with the lease, CONTENDED if another owner holds it,
            UNAVAILABLE if the backend could not be reached.
        """
        token = self._token_factory()
        try:
            stored = await self.store.set_if_absent(name, token, ttl)
        except LockBackendUnavailable as e:
            logger.warning("Lock backend unavailable while acquiring %s: %s", name, e)
            return AcquireResult(name=name, status=AcquireStatus.UNAVAILABLE)
        if not stored:
            return AcquireResult(name=name, status=AcquireStatus.CONTENDED)

        lease = Lease(name=name, token=token, ttl=ttl)
        self._start_renewal(lease)
        return AcquireResult(name=name, status=AcquireStatus.ACQUIRED, lease=lease)

    async def acquire(self, name: str, ttl: float) -> Tuple[str, bool]:
        """
        Attempt to take the lock. Returns (token, True) on success and ("", False) otherwise.
        Contention and backend failures are not distinguished here; use try_acquire for that.
        """
        result = await self.try_acquire(name, ttl)
        return result.token, result.acquired

    async def release(self, name: str, token: str) -> bool:
        """
        Delete the lock only if token still owns it, then stop its renewal loop.
        """
        try:
            released = await self.store.compare_delete(name, token)
        except LockBackendUnavailable as e:
            logger.warning("Lock backend unavailable while releasing %s: %s", name, e)
            return False
        if not released:
            return False
        self.registry.cancel(name)
        return True

    def abandon(self, name: str, token: str) -> bool:
        """
        Stop renewing the lease held with token without touching the backend key,
        which then expires on its own within its TTL.
        """
        return self.registry.cancel_owned(name, token)

    async def delete(self, name: str) -> bool:
        """
        Delete the lock whoever owns it, then stop any local renewal loop for it.
        """
        try:
            deleted = await self.store.delete(name)
        except LockBackendUnavailable as e:
            logger.warning("Lock backend unavailable while deleting %s: %s", name, e)
            return False
        if not deleted:
            return False
        self.registry.cancel(name)
        return True

    async def peek(self, name: str) -> str:
        """
        Return the raw owner value stored under name, or "" if the lock is not held.
        """
        value = await self.store.get(name)
        return value or ""

    def list(self) -> List[str]:
        """
        Names of locks whose renewal loop is running in this process.
        """
        return self.registry.names()

    async def shutdown(self) -> None:
        """
        Stop every local renewal loop and wait for them to exit. Backend keys are left untouched.
        """
        self.registry.cancel_all()
        if self._renewals:
            await asyncio.gather(*self._renewals, return_exceptions=True)

    def _start_renewal(self, lease: Lease) -> RenewalHandle:
        handle = RenewalHandle(lease.name, lease.token, lease.ttl)
        self.registry.register(handle)
        handle.task = asyncio.create_task(self._renew(handle), name=f"lease-renewal:{lease.name}")
        self._renewals.add(handle.task)
        handle.task.add_done_callback(self._renewals.discard)
        return handle

    async def _renew(self, handle: RenewalHandle) -> None:
        interval = handle.ttl * self.renewal_factor
        while not handle.cancelled:
            try:
                await asyncio.wait_for(handle.stopped.wait(), timeout=interval)
                return
            except asyncio.TimeoutError:
                pass

            if handle.cancelled:
                return
            try:
                extended = await self.store.compare_extend(handle.name, handle.token, handle.ttl)
            except LockBackendUnavailable as e:
                logger.warning("Could not renew lease %s: %s", handle.name, e)
                continue
            except Exception:
                logger.exception("Unexpected error renewing lease %s", handle.name)
                continue

            if extended:
                logger.debug("Renewed lease %s for %ss", handle.name, handle.ttl)
            elif not handle.cancelled:
                logger.info("Lease %s is no longer owned by %s, stopping renewal", handle.name, handle.token)
                self.registry.discard(handle)
                return
