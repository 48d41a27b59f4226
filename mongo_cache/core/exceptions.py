"""Custom exceptions for the cache layer."""


class CacheError(Exception):
    """Base exception for cache errors."""

    def __init__(self, message: str, backend: str = "mongo") -> None:
        """Initialize error.

        Args:
            message: Error message
            backend: Backend name
        """
        self.backend = backend
        super().__init__(f"[{backend}] {message}")


class StoreConnectionError(CacheError):
    """Raised when the store could not be connected or authenticated.

    Once raised by a store's readiness gate, the same instance is raised to
    every later caller of that store.
    """

    pass


class StorageError(CacheError):
    """Raised when a find, upsert or delete against the store fails."""

    def __init__(self, message: str, operation: str, backend: str = "mongo") -> None:
        """Initialize error.

        Args:
            message: Error message
            operation: Store operation that failed (get, set, delete, clear)
            backend: Backend name
        """
        self.operation = operation
        super().__init__(f"{operation} failed: {message}", backend=backend)


class DecodeError(CacheError):
    """Raised when a compressed value cannot be decompressed."""

    pass


class EncodeError(CacheError):
    """Raised when a value cannot be compressed.

    Never reaches callers of ``set``; the raw value is stored instead.
    """

    pass
