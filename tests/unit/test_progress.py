"""Tests for the progress pipeline: significance check, dedup and throttle."""

from __future__ import annotations

import asyncio

from sdkgen.build.progress import (
    SIGNIFICANT_PROGRESS_BYTES,
    DownloadProgress,
    did_progress_change_significantly,
    progress_pipeline,
    remove_duplicates,
    throttle,
)

MIB = 1024 * 1024


async def _aiter(values):
    for value in values:
        yield value


async def _collect(stream):
    return [value async for value in stream]


class FakeClock:
    """Clock that returns a scripted sequence of timestamps."""

    def __init__(self, times):
        self.times = list(times)
        self.calls = 0

    def __call__(self) -> float:
        value = self.times[self.calls]
        self.calls += 1
        return value


# ---------------------------------------------------------------------------
# did_progress_change_significantly
# ---------------------------------------------------------------------------


class TestSignificance:
    def test_threshold_is_one_mebibyte(self):
        assert SIGNIFICANT_PROGRESS_BYTES == MIB

    def test_small_growth_insignificant(self):
        prev = DownloadProgress(0, 10 * MIB)
        assert not did_progress_change_significantly(prev, DownloadProgress(MIB, 10 * MIB))

    def test_growth_beyond_threshold_significant(self):
        prev = DownloadProgress(0, 10 * MIB)
        assert did_progress_change_significantly(prev, DownloadProgress(MIB + 1, 10 * MIB))

    def test_total_change_significant(self):
        """Learning the total is always worth reporting."""
        assert did_progress_change_significantly(DownloadProgress(0, None), DownloadProgress(0, 5))


# ---------------------------------------------------------------------------
# remove_duplicates
# ---------------------------------------------------------------------------


class TestRemoveDuplicates:
    def test_first_value_always_yielded(self):
        result = asyncio.run(_collect(remove_duplicates(_aiter([3]), by=lambda a, b: False)))
        assert result == [3]

    def test_empty_source(self):
        assert asyncio.run(_collect(remove_duplicates(_aiter([]), by=lambda a, b: True))) == []

    def test_compares_against_last_delivered(self):
        """Small steps accumulate against the last delivered value, not the previous input."""
        values = [DownloadProgress(n * MIB // 2, 10 * MIB) for n in range(6)]
        result = asyncio.run(_collect(remove_duplicates(_aiter(values), by=did_progress_change_significantly)))
        # 0 delivered; 0.5 and 1.0 MiB are within 1 MiB of it; 1.5 MiB is not.
        assert [p.received_bytes for p in result] == [0, 3 * MIB // 2]


# ---------------------------------------------------------------------------
# throttle
# ---------------------------------------------------------------------------


class TestThrottle:
    def test_spaced_values_pass_through(self):
        clock = FakeClock([0.0, 1.0, 2.0])
        result = asyncio.run(_collect(throttle(_aiter("abc"), interval=1.0, clock=clock)))
        assert result == ["a", "b", "c"]

    def test_burst_keeps_latest_pending(self):
        """Values inside the interval are held; the newest one wins at the end."""
        clock = FakeClock([0.0, 0.1, 0.2, 0.3])
        result = asyncio.run(_collect(throttle(_aiter("abcd"), interval=1.0, clock=clock)))
        assert result == ["a", "d"]

    def test_emissions_respect_interval(self):
        clock = FakeClock([0.0, 0.5, 1.2, 1.4, 2.3])
        result = asyncio.run(_collect(throttle(_aiter("abcde"), interval=1.0, clock=clock)))
        assert result == ["a", "c", "e"]

    def test_last_value_emitted_once(self):
        """The final value is not duplicated when it was already emitted."""
        clock = FakeClock([0.0, 5.0])
        result = asyncio.run(_collect(throttle(_aiter("ab"), interval=1.0, clock=clock)))
        assert result == ["a", "b"]

    def test_empty_source(self):
        assert asyncio.run(_collect(throttle(_aiter([]), clock=FakeClock([])))) == []


class TestProgressPipeline:
    def test_dedup_then_throttle(self):
        values = [DownloadProgress(n * MIB, 4 * MIB) for n in (0, 2, 4)]
        values.insert(1, DownloadProgress(MIB // 4, 4 * MIB))
        clock = FakeClock([0.0, 0.1, 0.2])
        result = asyncio.run(_collect(progress_pipeline(_aiter(values), interval=1.0, clock=clock)))
        # The 256 KiB step never reaches the throttle; 2 MiB is superseded by 4 MiB.
        assert result == [DownloadProgress(0, 4 * MIB), DownloadProgress(4 * MIB, 4 * MIB)]
