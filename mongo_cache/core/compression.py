"""Conditional gzip compression for binary cache values."""

import asyncio
import gzip
import logging
import zlib
from typing import Any

from mongo_cache.core.exceptions import DecodeError, EncodeError
from mongo_cache.core.models import DEFAULT_OFFLOAD_THRESHOLD, CacheEntry, is_binary

logger = logging.getLogger(__name__)


class Compressor:
    """Best-effort compression of binary payloads.

    Only binary values (bytes, bytearray, memoryview) are compressed.
    Structured values pass through untouched. Payloads of at least
    ``offload_threshold`` bytes are processed in a worker thread so the
    event loop is not blocked by large gzip runs.

    Example:
        >>> compressor = Compressor(enabled=True)
        >>> entry = await compressor.compress(entry)
        >>> original = await compressor.decompress(entry.value)
    """

    def __init__(
        self,
        enabled: bool = False,
        offload_threshold: int = DEFAULT_OFFLOAD_THRESHOLD,
        level: int = 9,
    ) -> None:
        """Initialize the compressor.

        Args:
            enabled: Whether compression is applied at all
            offload_threshold: Payload size in bytes at which work moves to a thread
            level: gzip compression level (1-9)
        """
        self.enabled = enabled
        self.offload_threshold = offload_threshold
        self.level = level

    async def compress(self, entry: CacheEntry) -> CacheEntry:
        """Compress the entry's value when enabled and the value is binary.

        On failure the entry is returned unchanged; the write goes ahead with
        the raw payload.
        """
        if not self.enabled or not is_binary(entry.value):
            return entry

        raw = bytes(entry.value)
        try:
            packed = await self._run(self._gzip, raw)
        except EncodeError as e:
            logger.debug(f"Storing {entry.key!r} uncompressed: {e}")
            return entry

        logger.debug(f"Compressed {entry.key!r}: {len(raw)} -> {len(packed)} bytes")
        return entry.model_copy(update={"value": packed, "compressed": True})

    async def decompress(self, value: Any) -> bytes:
        """Restore the original bytes of a compressed value.

        Raises:
            DecodeError: If ``value`` is not a valid gzip stream
        """
        if not is_binary(value):
            raise DecodeError(f"Compressed value has unexpected type {type(value).__name__}")
        return await self._run(self._gunzip, bytes(value))

    async def _run(self, func: Any, payload: bytes) -> bytes:
        if len(payload) >= self.offload_threshold:
            return await asyncio.to_thread(func, payload)
        return func(payload)

    def _gzip(self, payload: bytes) -> bytes:
        try:
            return gzip.compress(payload, compresslevel=self.level)
        except (zlib.error, ValueError, MemoryError) as e:
            raise EncodeError(f"gzip compression failed: {e}") from e

    @staticmethod
    def _gunzip(payload: bytes) -> bytes:
        try:
            return gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError(f"Invalid gzip stream: {e}") from e
