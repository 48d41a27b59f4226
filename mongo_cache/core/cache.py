"""Abstract cache backend interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """Abstract base class for persistent cache storage.

    Note:
        ``get`` returns None both for a missing key and for a stored None.
        Use ``exists`` when the difference matters.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Retrieve value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> Any:
        """Store value in cache.

        Args:
            key: Cache key
            value: Value to store (must be serializable)
            ttl: Time to live in seconds

        Returns:
            The value passed in
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete value from cache.

        Args:
            key: Cache key
        """
        pass

    @abstractmethod
    async def clear(self, key: Optional[str] = None) -> None:
        """Delete every value in the cache.

        Args:
            key: Ignored; the whole cache is flushed
        """
        pass

    async def exists(self, key: str) -> bool:
        """Check if a live entry exists for a key.

        The default implementation cannot tell a stored None from a miss.
        """
        return await self.get(key) is not None

    async def del_(self, key: str) -> None:
        """Alias of ``delete``."""
        await self.delete(key)

    async def close(self) -> None:
        """Release resources held by the backend."""
        pass

    async def __aenter__(self) -> "CacheBackend":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
