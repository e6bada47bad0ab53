"""Unit tests for utility functions"""

import hashlib

import pytest

from cascade_rank.utils import as_async_iter, collect, fingerprint

pytestmark = pytest.mark.unit


class TestFingerprint:
    """Test text fingerprint consistency"""

    def test_fingerprint_from_str(self):
        """Test str input is hashed as UTF-8"""
        expected = hashlib.sha256("the cat sat".encode("utf-8")).hexdigest()

        result = fingerprint("the cat sat")

        assert result == expected
        assert len(result) == 64  # SHA256 = 256 bits = 64 hex chars

    def test_fingerprint_str_and_bytes_agree(self):
        assert fingerprint("café") == fingerprint("café".encode("utf-8"))

    def test_fingerprint_different_for_different_content(self):
        """Test that different content produces different hash"""
        assert fingerprint("content one") != fingerprint("content two")

    def test_lone_surrogate(self):
        """Test unpaired surrogates hash instead of raising"""
        result = fingerprint("cat \ud800")
        assert len(result) == 64
        assert result != fingerprint("cat ")
        assert result == fingerprint("cat \ud800")

    def test_whitespace_matters(self):
        """Test raw text is hashed as-is (no normalization)"""
        assert fingerprint("cat") != fingerprint("cat ")


class TestAsyncIteration:
    """Test sync/async iterable adapters"""

    @pytest.mark.asyncio
    async def test_sync_iterable(self):
        assert [x async for x in as_async_iter(["a", "b"])] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_async_iterable(self):
        async def source():
            yield 1
            yield 2

        assert [x async for x in as_async_iter(source())] == [1, 2]

    @pytest.mark.asyncio
    async def test_generator_consumed_lazily(self):
        pulled = []

        def source():
            for i in range(3):
                pulled.append(i)
                yield i

        iterator = as_async_iter(source())
        assert await iterator.__anext__() == 0
        assert pulled == [0]
        await iterator.aclose()

    @pytest.mark.asyncio
    async def test_collect(self):
        async def source():
            yield "x"

        assert await collect(source()) == ["x"]
        assert await collect(("a", "b")) == ["a", "b"]
        assert await collect([]) == []
