from typing import Optional, Protocol


class LockStore(Protocol):
    """
    The shared key-value backend behind LeaseLock. Every operation must be atomic.
    TTLs are given in seconds and may be fractional.
    """

    async def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        """Store value under key with expiry ttl only if key is absent. Return True if stored."""
        ...

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent or expired."""
        ...

    async def compare_delete(self, key: str, expected: str) -> bool:
        """Delete key only if its value equals expected. Return True if deleted."""
        ...

    async def compare_extend(self, key: str, expected: str, ttl: float) -> bool:
        """Reset the expiry of key to ttl only if its value equals expected. Return True if extended."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key regardless of its value. Return True if a key was removed."""
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        ...
