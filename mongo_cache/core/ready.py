"""Single-flight readiness gate for lazily connected resources."""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from mongo_cache.core.exceptions import StoreConnectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ReadyCallback = Callable[[Optional[BaseException], Optional[Any]], None]


class GateState(str, Enum):
    """Lifecycle of a ReadyGate."""

    UNINITIALIZED = "uninitialized"
    IN_FLIGHT = "in_flight"
    READY = "ready"
    FAILED = "failed"


class ReadyGate(Generic[T]):
    """Run an async initializer at most once and share its outcome.

    The first call to ``ready()`` or ``on_ready()`` starts the initializer as a
    task. Every caller, whether it arrives before or after resolution, awaits
    the same future and therefore observes the same handle or the same
    ``StoreConnectionError``. Failure is terminal for the gate: the
    initializer is never retried.

    Example:
        >>> gate = ReadyGate(connect)
        >>> db = await gate.ready()  # connects
        >>> db = await gate.ready()  # reuses the same handle
    """

    def __init__(self, initializer: Callable[[], Awaitable[T]], name: str = "store") -> None:
        """Initialize the gate.

        Args:
            initializer: Zero-argument coroutine function producing the handle
            name: Label used in log messages
        """
        self._initializer = initializer
        self._name = name
        self._future: Optional[asyncio.Future] = None
        self._task: Optional[asyncio.Task] = None
        self.attempts = 0

    @property
    def state(self) -> GateState:
        """Current lifecycle state."""
        if self._future is None:
            return GateState.UNINITIALIZED
        if not self._future.done():
            return GateState.IN_FLIGHT
        if self._future.cancelled() or self._future.exception() is not None:
            return GateState.FAILED
        return GateState.READY

    async def ready(self) -> T:
        """Wait for the initializer and return its handle.

        Raises:
            StoreConnectionError: If initialization failed, now or earlier
        """
        # Shielded so a cancelled waiter cannot cancel the shared future.
        return await asyncio.shield(self._start())

    def on_ready(self, callback: ReadyCallback) -> None:
        """Register ``callback(error, handle)`` for the initialization outcome.

        The callback is always scheduled on the event loop, never invoked
        inside this call, even when the gate has already resolved. Must be
        called from within a running event loop.
        """
        future = self._start()

        def _deliver(fut: asyncio.Future) -> None:
            error = fut.exception()
            callback(error, None if error is not None else fut.result())

        future.add_done_callback(_deliver)

    def _start(self) -> asyncio.Future:
        if self._future is None:
            loop = asyncio.get_running_loop()
            self._future = loop.create_future()
            self._task = loop.create_task(self._initialize(self._future))
        return self._future

    async def _initialize(self, future: asyncio.Future) -> None:
        self.attempts += 1
        logger.debug(f"Initializing {self._name}")
        try:
            handle = await self._initializer()
        except asyncio.CancelledError:
            # Cancellation fails the gate like any other error.
            future.set_exception(StoreConnectionError(f"{self._name} initialization was cancelled"))
            raise
        except StoreConnectionError as e:
            future.set_exception(e)
        except Exception as e:
            error = StoreConnectionError(f"{self._name} initialization failed: {e}")
            error.__cause__ = e
            future.set_exception(error)
        else:
            logger.debug(f"{self._name} ready")
            future.set_result(handle)
