"""Unit tests for OverrideMerger: override precedence, fail-open cache reads,
write-through invalidation, and per-meeting single-flight analysis.

Uses in-memory store doubles from conftest -- no storage dependency.
"""

from __future__ import annotations

import asyncio

import pytest

from src.meeting_intel.analysis.merge import OverrideMerger
from src.meeting_intel.core.errors import (
    MalformedCachedPayloadError,
    StorageUnavailableError,
)
from src.meeting_intel.meetings.schemas import (
    AnalysisResult,
    ClassificationResult,
    MeetingCategory,
    MeetingInsights,
    OverrideSetting,
    RelevanceSource,
)


# ── Constants ────────────────────────────────────────────────────────────────

MEETING_ID = "kickoff_2024-03-01"

RELEVANT = ClassificationResult(
    category=MeetingCategory.ARCHITECTURE_REVIEW,
    confidence=0.9,
    reason="Detected 11 relevant indicators for architecture review",
)
SKIPPED = ClassificationResult(
    category=MeetingCategory.SKIP,
    confidence=0.8,
    reason="administrative/non-technical meeting",
)


def _result(meeting_id: str = MEETING_ID) -> AnalysisResult:
    return AnalysisResult(
        meeting_id=meeting_id,
        insights=MeetingInsights(classification=RELEVANT, is_portfolio_relevant=True),
    )


# ── Relevance ────────────────────────────────────────────────────────────────


class TestResolveRelevance:
    @pytest.mark.asyncio
    async def test_classifier_verdict_without_override(self, merger: OverrideMerger) -> None:
        resolution = await merger.resolve_relevance(MEETING_ID, RELEVANT)
        assert resolution.is_portfolio_relevant is True
        assert resolution.source == RelevanceSource.CLASSIFIER
        assert resolution.category == MeetingCategory.ARCHITECTURE_REVIEW

    @pytest.mark.asyncio
    async def test_override_wins_over_skip(self, merger: OverrideMerger, override_store) -> None:
        override_store.settings[MEETING_ID] = OverrideSetting(
            meeting_id=MEETING_ID, is_portfolio_relevant=True, description="Keep"
        )
        resolution = await merger.resolve_relevance(MEETING_ID, SKIPPED)
        assert resolution.is_portfolio_relevant is True
        assert resolution.source == RelevanceSource.OVERRIDE
        assert resolution.category == MeetingCategory.SKIP
        assert resolution.description == "Keep"

    @pytest.mark.asyncio
    async def test_override_can_hide_relevant_meeting(self, merger: OverrideMerger) -> None:
        await merger.set_override(MEETING_ID, False)
        resolution = await merger.resolve_relevance(MEETING_ID, RELEVANT)
        assert resolution.is_portfolio_relevant is False
        assert resolution.category == MeetingCategory.ARCHITECTURE_REVIEW

    @pytest.mark.asyncio
    async def test_unreadable_override_store_falls_back(
        self, merger: OverrideMerger, override_store
    ) -> None:
        override_store.get_error = StorageUnavailableError("db", "get")
        resolution = await merger.resolve_relevance(MEETING_ID, RELEVANT)
        assert resolution.is_portfolio_relevant is True
        assert resolution.source == RelevanceSource.CLASSIFIER

    @pytest.mark.asyncio
    async def test_missing_analysis_is_not_relevant(self, merger: OverrideMerger) -> None:
        resolution = await merger.resolve_relevance(MEETING_ID, None)
        assert resolution.is_portfolio_relevant is False
        assert resolution.category is None


# ── Analysis Cache ───────────────────────────────────────────────────────────


class TestCachedAnalysis:
    @pytest.mark.asyncio
    async def test_hit_and_miss(self, merger: OverrideMerger, analysis_store) -> None:
        assert await merger.get_cached_analysis(MEETING_ID) is None
        analysis_store.results[MEETING_ID] = _result()
        cached = await merger.get_cached_analysis(MEETING_ID)
        assert cached is not None and cached.meeting_id == MEETING_ID

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            MalformedCachedPayloadError(MEETING_ID, "bad json"),
            StorageUnavailableError("s3", "get_content"),
            RuntimeError("boom"),
        ],
    )
    async def test_read_errors_fail_open(
        self, merger: OverrideMerger, analysis_store, error: Exception
    ) -> None:
        analysis_store.get_error = error
        assert await merger.get_cached_analysis(MEETING_ID) is None

    @pytest.mark.asyncio
    async def test_slow_store_times_out_to_miss(self, merger: OverrideMerger, analysis_store) -> None:
        analysis_store.results[MEETING_ID] = _result()
        analysis_store.get_delay = 1.0
        assert await merger.get_cached_analysis(MEETING_ID) is None

    @pytest.mark.asyncio
    async def test_store_invokes_invalidation_hooks(self, merger: OverrideMerger) -> None:
        seen: list[str] = []
        merger.add_invalidation_hook(seen.append)

        assert await merger.store_analysis(MEETING_ID, _result()) is True
        assert seen == [MEETING_ID]

    @pytest.mark.asyncio
    async def test_failed_store_returns_false_without_hooks(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        seen: list[str] = []
        merger.add_invalidation_hook(seen.append)
        analysis_store.put_error = StorageUnavailableError("s3", "put")

        assert await merger.store_analysis(MEETING_ID, _result()) is False
        assert seen == []

    @pytest.mark.asyncio
    async def test_failing_hook_does_not_break_write(self, merger: OverrideMerger) -> None:
        def broken(_: str) -> None:
            raise RuntimeError("hook failed")

        seen: list[str] = []
        merger.add_invalidation_hook(broken)
        merger.add_invalidation_hook(seen.append)

        assert await merger.store_analysis(MEETING_ID, _result()) is True
        assert seen == [MEETING_ID]


# ── Single-flight ────────────────────────────────────────────────────────────


class TestGetOrAnalyze:
    @pytest.mark.asyncio
    async def test_concurrent_callers_compute_once(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        calls = 0

        async def compute() -> AnalysisResult:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.02)
            return _result()

        results = await asyncio.gather(
            *(merger.get_or_analyze(MEETING_ID, compute) for _ in range(4))
        )
        assert calls == 1
        assert all(r is not None and r.meeting_id == MEETING_ID for r in results)
        assert MEETING_ID in analysis_store.results

    @pytest.mark.asyncio
    async def test_cached_result_skips_compute(self, merger: OverrideMerger, analysis_store) -> None:
        analysis_store.results[MEETING_ID] = _result()

        async def compute() -> AnalysisResult:
            raise AssertionError("should not compute")

        assert await merger.get_or_analyze(MEETING_ID, compute) is not None

    @pytest.mark.asyncio
    async def test_none_result_is_not_stored(self, merger: OverrideMerger, analysis_store) -> None:
        async def compute() -> None:
            return None

        assert await merger.get_or_analyze(MEETING_ID, compute) is None
        assert analysis_store.results == {}

    @pytest.mark.asyncio
    async def test_compute_errors_propagate(self, merger: OverrideMerger) -> None:
        async def compute() -> AnalysisResult:
            raise StorageUnavailableError("s3", "get_content")

        with pytest.raises(StorageUnavailableError):
            await merger.get_or_analyze(MEETING_ID, compute)

    @pytest.mark.asyncio
    async def test_cache_fill_does_not_invoke_hooks(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        seen: list[str] = []
        merger.add_invalidation_hook(seen.append)

        async def compute() -> AnalysisResult:
            return _result()

        assert await merger.get_or_analyze(MEETING_ID, compute) is not None
        assert MEETING_ID in analysis_store.results
        assert seen == []


class TestRefresh:
    @pytest.mark.asyncio
    async def test_ignores_cached_value_and_replaces_it(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        stale = _result()
        fresh = _result()
        analysis_store.results[MEETING_ID] = stale
        seen: list[str] = []
        merger.add_invalidation_hook(seen.append)

        async def compute() -> AnalysisResult:
            return fresh

        assert await merger.refresh(MEETING_ID, compute) is fresh
        assert analysis_store.results[MEETING_ID] is fresh
        assert seen == [MEETING_ID]

    @pytest.mark.asyncio
    async def test_failed_write_still_invokes_hooks(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        seen: list[str] = []
        merger.add_invalidation_hook(seen.append)
        analysis_store.put_error = StorageUnavailableError("s3", "put")

        async def compute() -> AnalysisResult:
            return _result()

        assert await merger.refresh(MEETING_ID, compute) is not None
        assert analysis_store.results == {}
        assert seen == [MEETING_ID]

    @pytest.mark.asyncio
    async def test_none_result_leaves_cache_alone(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        cached = _result()
        analysis_store.results[MEETING_ID] = cached

        async def compute() -> None:
            return None

        assert await merger.refresh(MEETING_ID, compute) is None
        assert analysis_store.results[MEETING_ID] is cached

    @pytest.mark.asyncio
    async def test_never_overlaps_a_cache_fill(
        self, merger: OverrideMerger, analysis_store
    ) -> None:
        active = 0
        peak = 0
        produced: list[AnalysisResult] = []

        async def compute() -> AnalysisResult:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            result = _result()
            produced.append(result)
            return result

        await asyncio.gather(
            merger.get_or_analyze(MEETING_ID, compute),
            merger.refresh(MEETING_ID, compute),
            merger.get_or_analyze(MEETING_ID, compute),
        )

        assert peak == 1
        # fill, refresh, then the second reader hits the refreshed entry
        assert len(produced) == 2
        assert analysis_store.results[MEETING_ID] is produced[-1]


# ── Overrides ────────────────────────────────────────────────────────────────


class TestOverrides:
    @pytest.mark.asyncio
    async def test_set_and_get(self, merger: OverrideMerger) -> None:
        seen: list[str] = []
        merger.add_invalidation_hook(seen.append)

        setting = await merger.set_override(MEETING_ID, True, description="Great session")
        assert setting is not None
        stored = await merger.get_override(MEETING_ID)
        assert stored is not None
        assert stored.is_portfolio_relevant is True
        assert stored.description == "Great session"
        assert seen == [MEETING_ID]

    @pytest.mark.asyncio
    async def test_failed_write_returns_none(self, merger: OverrideMerger, override_store) -> None:
        override_store.put_error = StorageUnavailableError("db", "put")
        assert await merger.set_override(MEETING_ID, True) is None
        assert override_store.settings == {}
