"""Tests for single-flight fetch coordination."""

from __future__ import annotations

import asyncio

import pytest

from studytrack.cache.keys import CacheNamespace
from studytrack.cache.memory import TTLCache
from studytrack.cache.singleflight import SingleFlight


class CountingFetcher:
    """Fetcher that blocks until released and counts its calls."""

    def __init__(self, value: object = "value", error: Exception | None = None) -> None:
        self.value = value
        self.error = error
        self.calls = 0
        self.release = asyncio.Event()

    async def __call__(self) -> object:
        self.calls += 1
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.value


class TestSingleFlight:
    """Concurrent misses share one fetch."""

    @pytest.mark.asyncio
    async def test_cache_hit_skips_fetch(self) -> None:
        cache = TTLCache()
        cache.set(CacheNamespace.SUBJECTS, "u1", ["cached"])
        flight = SingleFlight(cache)

        async def fetch() -> list[str]:
            raise AssertionError("should not fetch")

        assert await flight.get_or_fetch(CacheNamespace.SUBJECTS, "u1", fetch) == ["cached"]

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_fetch(self) -> None:
        flight = SingleFlight(TTLCache())
        fetcher = CountingFetcher(value=["s1"])

        tasks = [
            asyncio.create_task(flight.get_or_fetch(CacheNamespace.SUBJECTS, "u1", fetcher))
            for _ in range(10)
        ]
        await asyncio.sleep(0)
        assert flight.in_flight == 1
        fetcher.release.set()
        results = await asyncio.gather(*tasks)

        assert fetcher.calls == 1
        assert all(result == ["s1"] for result in results)
        assert flight.in_flight == 0

    @pytest.mark.asyncio
    async def test_result_is_cached(self) -> None:
        cache = TTLCache()
        flight = SingleFlight(cache)
        fetcher = CountingFetcher(value={"a": 1})
        fetcher.release.set()

        await flight.get_or_fetch(CacheNamespace.QUESTION_COUNTS, "u1", fetcher)
        await flight.get_or_fetch(CacheNamespace.QUESTION_COUNTS, "u1", fetcher)

        assert fetcher.calls == 1
        assert cache.get(CacheNamespace.QUESTION_COUNTS, "u1") == {"a": 1}

    @pytest.mark.asyncio
    async def test_different_keys_fetch_separately(self) -> None:
        flight = SingleFlight(TTLCache())
        first = CountingFetcher(value="one")
        second = CountingFetcher(value="two")
        first.release.set()
        second.release.set()

        a = await flight.get_or_fetch(CacheNamespace.QUESTION, "u1", first, extra="q1")
        b = await flight.get_or_fetch(CacheNamespace.QUESTION, "u1", second, extra="q2")

        assert (a, b) == ("one", "two")
        assert (first.calls, second.calls) == (1, 1)

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_is_not_cached(self) -> None:
        cache = TTLCache()
        flight = SingleFlight(cache)
        fetcher = CountingFetcher(error=RuntimeError("store down"))

        tasks = [
            asyncio.create_task(flight.get_or_fetch(CacheNamespace.TRASH, "u1", fetcher))
            for _ in range(5)
        ]
        await asyncio.sleep(0)
        fetcher.release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert fetcher.calls == 1
        assert all(isinstance(r, RuntimeError) and str(r) == "store down" for r in results)
        assert flight.in_flight == 0
        assert cache.get(CacheNamespace.TRASH, "u1") is None

    @pytest.mark.asyncio
    async def test_retry_after_failure_fetches_again(self) -> None:
        flight = SingleFlight(TTLCache())
        failing = CountingFetcher(error=RuntimeError("boom"))
        failing.release.set()
        with pytest.raises(RuntimeError):
            await flight.get_or_fetch(CacheNamespace.TRASH, "u1", failing)

        working = CountingFetcher(value=["t"])
        working.release.set()
        assert await flight.get_or_fetch(CacheNamespace.TRASH, "u1", working) == ["t"]

    @pytest.mark.asyncio
    async def test_none_is_returned_but_not_cached(self) -> None:
        cache = TTLCache()
        flight = SingleFlight(cache)
        fetcher = CountingFetcher(value=None)
        fetcher.release.set()

        assert await flight.get_or_fetch(CacheNamespace.QUESTION, "u1", fetcher, extra="q") is None
        assert await flight.get_or_fetch(CacheNamespace.QUESTION, "u1", fetcher, extra="q") is None
        assert fetcher.calls == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_fetch_started_before_invalidation_is_not_cached(self) -> None:
        """A write that commits mid-fetch must not be hidden by the pre-write result."""
        cache = TTLCache()
        flight = SingleFlight(cache)
        stale = CountingFetcher(value="before write")

        task = asyncio.create_task(flight.get_or_fetch(CacheNamespace.QUESTIONS, "u1", stale))
        await asyncio.sleep(0)
        cache.invalidate(CacheNamespace.QUESTIONS, "u1")
        stale.release.set()

        assert await task == "before write"
        assert cache.get(CacheNamespace.QUESTIONS, "u1") is None

    @pytest.mark.asyncio
    async def test_caller_after_invalidation_does_not_join_stale_fetch(self) -> None:
        flight = SingleFlight(TTLCache())
        stale = CountingFetcher(value="before write")
        fresh = CountingFetcher(value="after write")

        first = asyncio.create_task(flight.get_or_fetch(CacheNamespace.QUESTIONS, "u1", stale))
        await asyncio.sleep(0)
        flight.cache.invalidate(CacheNamespace.QUESTIONS, "u1")
        second = asyncio.create_task(flight.get_or_fetch(CacheNamespace.QUESTIONS, "u1", fresh))
        await asyncio.sleep(0)

        stale.release.set()
        fresh.release.set()
        assert await first == "before write"
        assert await second == "after write"
        assert await flight.get_or_fetch(CacheNamespace.QUESTIONS, "u1", stale) == "after write"

    @pytest.mark.asyncio
    async def test_stats_report_in_flight_fetches(self) -> None:
        flight = SingleFlight(TTLCache())
        fetcher = CountingFetcher()
        task = asyncio.create_task(flight.get_or_fetch(CacheNamespace.TOPICS, "u1", fetcher))
        await asyncio.sleep(0)

        assert flight.get_stats().locks == 1
        fetcher.release.set()
        await task
        assert flight.get_stats().locks == 0
