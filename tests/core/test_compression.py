"""Tests for the Compressor."""

import gzip
import zlib

import pytest

from mongo_cache.core import CacheEntry, Compressor, DecodeError


def make_entry(value):
    return CacheEntry.build("k", value, ttl=60)


@pytest.mark.asyncio
async def test_disabled_compressor_passes_through():
    """Test nothing is compressed when compression is off."""
    compressor = Compressor(enabled=False)
    entry = make_entry(b"x" * 1000)

    result = await compressor.compress(entry)

    assert result is entry
    assert result.compressed is False


@pytest.mark.asyncio
async def test_structured_values_are_not_compressed():
    """Test non-binary values are returned unchanged."""
    compressor = Compressor(enabled=True)

    for value in ({"a": 1}, "text", 0, False, None, [1, 2]):
        entry = make_entry(value)
        result = await compressor.compress(entry)
        assert result is entry
        assert result.compressed is False


@pytest.mark.asyncio
async def test_binary_value_is_gzipped():
    """Test binary values are replaced by their gzip encoding."""
    compressor = Compressor(enabled=True)
    payload = b"cache me " * 500
    entry = make_entry(payload)

    result = await compressor.compress(entry)

    assert result.compressed is True
    assert result.key == entry.key
    assert result.expire == entry.expire
    assert len(result.value) < len(payload)
    assert gzip.decompress(result.value) == payload
    # The input entry is left untouched
    assert entry.value == payload
    assert entry.compressed is False


@pytest.mark.asyncio
async def test_compression_failure_keeps_raw_value(mocker):
    """Test a failing gzip run falls back to the raw payload silently."""
    mocker.patch(
        "mongo_cache.core.compression.gzip.compress",
        side_effect=zlib.error("out of buffers"),
    )
    compressor = Compressor(enabled=True)
    entry = make_entry(b"payload")

    result = await compressor.compress(entry)

    assert result is entry
    assert result.value == b"payload"
    assert result.compressed is False


@pytest.mark.asyncio
async def test_decompress_roundtrip():
    """Test decompress restores the original bytes."""
    compressor = Compressor(enabled=True)
    entry = await compressor.compress(make_entry(b"\x00\x01\x02" * 100))

    assert await compressor.decompress(entry.value) == b"\x00\x01\x02" * 100


@pytest.mark.asyncio
async def test_decompress_invalid_stream_raises():
    """Test corrupt data raises DecodeError."""
    compressor = Compressor(enabled=True)

    with pytest.raises(DecodeError, match="Invalid gzip stream"):
        await compressor.decompress(b"definitely not gzip")


@pytest.mark.asyncio
async def test_decompress_truncated_stream_raises():
    """Test a truncated gzip stream raises DecodeError."""
    compressor = Compressor(enabled=True)
    packed = gzip.compress(b"abcdef" * 1000)

    with pytest.raises(DecodeError):
        await compressor.decompress(packed[: len(packed) // 2])


@pytest.mark.asyncio
async def test_decompress_non_binary_raises():
    """Test a non-binary compressed value raises DecodeError."""
    compressor = Compressor(enabled=True)

    with pytest.raises(DecodeError, match="unexpected type str"):
        await compressor.decompress("abc")


@pytest.mark.asyncio
async def test_large_payload_is_offloaded_to_thread(mocker):
    """Test payloads over the threshold are compressed in a worker thread."""

    async def run_inline(func, *args):
        return func(*args)

    to_thread = mocker.patch(
        "mongo_cache.core.compression.asyncio.to_thread", side_effect=run_inline
    )
    compressor = Compressor(enabled=True, offload_threshold=1024)

    small = await compressor.compress(make_entry(b"a" * 100))
    assert to_thread.call_count == 0

    large = await compressor.compress(make_entry(b"a" * 4096))
    assert to_thread.call_count == 1
    assert small.compressed and large.compressed

    await compressor.decompress(large.value)
    # Compressed output is small, so decompression of it runs inline
    assert to_thread.call_count == 1
