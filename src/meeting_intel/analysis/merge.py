"""Override-aware analysis cache.

OverrideMerger sits between the MeetingLibrary and the two persistence
contracts:

- AnalysisStore: cached AnalysisResult per meeting. Reads fail open, so a
  timeout, a storage outage, or a corrupt payload is a cache miss.
- OverrideStore: manual portfolio-relevance decisions. An override always
  wins for relevance; the category always comes from the classifier.

Every store round-trip runs under ``asyncio.wait_for`` with the configured
storage timeout. Explicit writes (``refresh`` and ``set_override``) notify
invalidation hooks so display caches drop stale lists immediately. Filling a
cache miss inside ``get_or_analyze`` does not, since the caller already
holds the fresh result.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from src.meeting_intel.analysis.stores import AnalysisStore, OverrideStore
from src.meeting_intel.core.errors import MalformedCachedPayloadError
from src.meeting_intel.core.monitoring import analysis_cache_lookups_total
from src.meeting_intel.meetings.schemas import (
    AnalysisResult,
    ClassificationResult,
    OverrideSetting,
    RelevanceResolution,
    RelevanceSource,
)

logger = structlog.get_logger(__name__)

InvalidationHook = Callable[[str], None]


class OverrideMerger:
    """Cached analysis plus manual overrides, merged per meeting.

    Args:
        analysis_store: Where AnalysisResults are persisted.
        override_store: Where OverrideSettings are persisted.
        timeout_seconds: Deadline for each store round-trip.
    """

    def __init__(
        self,
        analysis_store: AnalysisStore,
        override_store: OverrideStore,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._analysis_store = analysis_store
        self._override_store = override_store
        self._timeout = timeout_seconds
        self._hooks: list[InvalidationHook] = []
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ── Invalidation ──────────────────────────────────────────────────────

    def add_invalidation_hook(self, callback: InvalidationHook) -> None:
        """Register a callback invoked with the meeting id after explicit writes."""
        self._hooks.append(callback)

    def _notify(self, meeting_id: str) -> None:
        for hook in self._hooks:
            try:
                hook(meeting_id)
            except Exception:
                logger.warning(
                    "merge.invalidation_hook_failed",
                    meeting_id=meeting_id,
                    exc_info=True,
                )

    def _lock_for(self, meeting_id: str) -> asyncio.Lock:
        lock = self._locks.get(meeting_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[meeting_id] = lock
        return lock

    async def _with_deadline(self, awaitable: Awaitable[Any]) -> Any:
        return await asyncio.wait_for(awaitable, timeout=self._timeout)

    # ── Relevance ─────────────────────────────────────────────────────────

    async def resolve_relevance(
        self,
        meeting_id: str,
        classification: ClassificationResult | None,
    ) -> RelevanceResolution:
        """Effective relevance: the override if one exists, else the classifier."""
        category = classification.category if classification else None
        override = await self.get_override(meeting_id)

        if override is not None:
            return RelevanceResolution(
                meeting_id=meeting_id,
                is_portfolio_relevant=override.is_portfolio_relevant,
                category=category,
                source=RelevanceSource.OVERRIDE,
                description=override.description,
            )

        return RelevanceResolution(
            meeting_id=meeting_id,
            is_portfolio_relevant=bool(classification and classification.is_relevant),
            category=category,
            source=RelevanceSource.CLASSIFIER,
        )

    # ── Analysis Cache ────────────────────────────────────────────────────

    async def get_cached_analysis(self, meeting_id: str) -> AnalysisResult | None:
        """Cached result, or None on miss, timeout, outage, or corrupt payload."""
        try:
            result = await self._with_deadline(self._analysis_store.get(meeting_id))
        except MalformedCachedPayloadError as exc:
            analysis_cache_lookups_total.labels(result="malformed").inc()
            logger.warning(
                "merge.cached_analysis_malformed",
                meeting_id=meeting_id,
                detail=exc.detail,
            )
            return None
        except asyncio.TimeoutError:
            analysis_cache_lookups_total.labels(result="timeout").inc()
            logger.warning(
                "merge.cached_analysis_timeout",
                meeting_id=meeting_id,
                timeout_seconds=self._timeout,
            )
            return None
        except Exception:
            analysis_cache_lookups_total.labels(result="error").inc()
            logger.warning(
                "merge.cached_analysis_read_failed",
                meeting_id=meeting_id,
                exc_info=True,
            )
            return None

        analysis_cache_lookups_total.labels(result="hit" if result else "miss").inc()
        return result

    async def store_analysis(
        self, meeting_id: str, result: AnalysisResult, notify: bool = True
    ) -> bool:
        """Write-through with a deadline. Returns False if the write failed.

        Invalidation hooks fire after a successful write unless ``notify`` is False.
        """
        try:
            await self._with_deadline(self._analysis_store.put(meeting_id, result))
        except Exception:
            logger.warning(
                "merge.store_analysis_failed",
                meeting_id=meeting_id,
                exc_info=True,
            )
            return False

        if notify:
            self._notify(meeting_id)
        return True

    async def get_or_analyze(
        self,
        meeting_id: str,
        compute: Callable[[], Awaitable[AnalysisResult | None]],
    ) -> AnalysisResult | None:
        """Cached result, or compute-and-store under a per-meeting lock.

        Concurrent callers for the same meeting share one computation.
        Exceptions raised by ``compute`` propagate to the caller.
        """
        async with self._lock_for(meeting_id):
            cached = await self.get_cached_analysis(meeting_id)
            if cached is not None:
                return cached

            result = await compute()
            if result is None:
                return None
            await self.store_analysis(meeting_id, result, notify=False)
            return result

    async def refresh(
        self,
        meeting_id: str,
        compute: Callable[[], Awaitable[AnalysisResult | None]],
    ) -> AnalysisResult | None:
        """Recompute and replace the cached result, ignoring any cached value.

        Holds the same per-meeting lock as ``get_or_analyze``, so a refresh
        never runs alongside a cache fill for the same meeting. Hooks fire
        whether or not the write succeeds.
        """
        async with self._lock_for(meeting_id):
            result = await compute()
            if result is None:
                return None
            stored = await self.store_analysis(meeting_id, result, notify=False)
            self._notify(meeting_id)

        logger.info("merge.analysis_refreshed", meeting_id=meeting_id, stored=stored)
        return result

    # ── Overrides ─────────────────────────────────────────────────────────

    async def get_override(self, meeting_id: str) -> OverrideSetting | None:
        """Stored override, or None if absent or unreadable."""
        try:
            return await self._with_deadline(self._override_store.get(meeting_id))
        except Exception:
            logger.warning(
                "merge.override_read_failed",
                meeting_id=meeting_id,
                exc_info=True,
            )
            return None

    async def set_override(
        self,
        meeting_id: str,
        is_portfolio_relevant: bool,
        description: str | None = None,
    ) -> OverrideSetting | None:
        """Persist a manual relevance decision.

        Returns the stored setting, or None if the write failed.
        """
        setting = OverrideSetting(
            meeting_id=meeting_id,
            is_portfolio_relevant=is_portfolio_relevant,
            description=description,
            updated_at=datetime.now(timezone.utc),
        )
        try:
            await self._with_deadline(self._override_store.put(setting))
        except Exception:
            logger.error(
                "merge.override_write_failed",
                meeting_id=meeting_id,
                exc_info=True,
            )
            return None

        logger.info(
            "merge.override_set",
            meeting_id=meeting_id,
            is_portfolio_relevant=is_portfolio_relevant,
        )
        self._notify(meeting_id)
        return setting


__all__ = ["InvalidationHook", "OverrideMerger"]
