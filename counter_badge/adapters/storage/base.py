"""Counter storage interfaces.

Routes and services depend on ``AbstractCounterStore`` only, so the local
file and the durable key-value store are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


def validate_count(value: int) -> int:
    """Ensure a value can be persisted as the counter.

    Raises:
        ValueError: If value is not a non-negative integer.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("count must be an integer")
    if value < 0:
        raise ValueError("count must be >= 0")
    return value


class AbstractCounterStore(ABC):
    """Interface for counter stores.

    Implementations must treat an absent value as 0 (success), and raise
    ``StorageAppError`` subclasses for genuine failures.
    """

    #: Short backend name used in logs and diagnostics.
    name: str = "abstract"

    @abstractmethod
    async def get_count(self) -> int:
        """Return the persisted counter value, or 0 if nothing was stored.

        Raises:
            BackendUnavailableError: If the medium is unreachable or malformed.
            CorruptStateError: If persisted local state cannot be parsed.
        """
        raise NotImplementedError

    @abstractmethod
    async def set_count(self, value: int) -> bool:
        """Overwrite the counter with an exact value.

        Args:
            value: Non-negative integer to persist.

        Returns:
            True once the value is stored.

        Raises:
            ValueError: If value is not a non-negative integer.
            BackendUnavailableError: If the medium is unreachable.
        """
        raise NotImplementedError

    async def increment(self) -> int:
        """Read, add one, write back and return the new value.

        This is a plain read-modify-write: concurrent callers against a shared
        backend can both write the same value, losing one increment.
        """
        current = await self.get_count()
        next_value = current + 1
        await self.set_count(next_value)
        return next_value

    async def aclose(self) -> None:
        """Release any pooled connections held by the store."""
        return None
