"""MeetingLibrary -- the host-facing entry point for meeting records.

Every listing re-derives records from the blob store:

1. List the meetings prefix (the only failure that aborts a batch).
2. Detect artifact types and group them into MeetingRecords.
3. Enrich each record with bounded concurrency: signed URLs, summary
   description, cached or fresh analysis, optional leadership analysis,
   and override-aware relevance.
4. Sort relevant records first, newest first.

Per-record problems are collected into BatchDiagnostics instead of being
raised. A transcript that cannot be read or analyzed in time leaves its
record "uncategorized"; any other per-record error drops the record.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections import Counter
from collections.abc import Callable
from typing import Any, Protocol

import structlog

from src.meeting_intel.analysis.merge import OverrideMerger
from src.meeting_intel.analysis.transcript import TranscriptAnalyzer
from src.meeting_intel.analysis.ttl_cache import TTLCacheSlot
from src.meeting_intel.core.errors import StorageUnavailableError
from src.meeting_intel.core.monitoring import (
    artifact_failures_total,
    artifacts_listed_total,
)
from src.meeting_intel.meetings.blob_store import BlobObject, BlobStore
from src.meeting_intel.meetings.grouping import (
    ArtifactGrouper,
    detect_artifact_type,
    filename_from_key,
)
from src.meeting_intel.meetings.schemas import (
    AnalysisResult,
    BatchDiagnostics,
    CategoryCount,
    ClassificationResult,
    MeetingListing,
    MeetingRecord,
    RawArtifact,
    RelevanceSource,
    display_category,
)

logger = structlog.get_logger(__name__)

SUMMARY_MIN_CHARS = 50
SUMMARY_LINE_MIN_CHARS = 20
DESCRIPTION_MAX_CHARS = 200

_WORD_START_RE = re.compile(r"\b\w")


class LeadershipAnalyzer(Protocol):
    """External narrative analysis of a relevant meeting (opaque result)."""

    async def analyze(
        self, record: MeetingRecord, transcript: str
    ) -> dict[str, Any] | None: ...


# ── Helpers ──────────────────────────────────────────────────────────────────


def summary_description(content: str | None) -> str | None:
    """First substantial line of a summary, capped at 200 characters."""
    if not content or len(content) <= SUMMARY_MIN_CHARS:
        return None
    for line in content.split("\n"):
        stripped = line.strip()
        if len(stripped) > SUMMARY_LINE_MIN_CHARS:
            if len(stripped) > DESCRIPTION_MAX_CHARS:
                return stripped[:DESCRIPTION_MAX_CHARS] + "..."
            return stripped
    return None


def category_label(category: str) -> str:
    """``architecture-review`` -> ``Architecture Review``."""
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), category.replace("-", " "))


def sort_records(records: list[MeetingRecord]) -> list[MeetingRecord]:
    """Relevant records first, then by recording date, newest first."""
    by_date = sorted(records, key=lambda r: r.date_recorded, reverse=True)
    return sorted(by_date, key=lambda r: not r.is_portfolio_relevant)


# ── Library ──────────────────────────────────────────────────────────────────


class MeetingLibrary:
    """Builds, caches, and serves enriched MeetingRecords.

    Args:
        blob_store: Source of meeting artifacts.
        merger: Override-aware analysis cache.
        analyzer: TranscriptAnalyzer used for fresh analysis.
        grouper: ArtifactGrouper used to merge artifacts.
        leadership_analyzer: Optional external narrative analyzer.
        meetings_prefix: Blob prefix holding meeting artifacts.
        signed_url_ttl: Lifetime of generated download URLs, in seconds.
        concurrency: Maximum records enriched at once.
        timeout_seconds: Deadline for each storage or analyzer call.
        display_cache_ttl: Lifetime of the cached display list, in seconds.
        clock: Monotonic clock for the display cache, injectable for tests.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        merger: OverrideMerger,
        analyzer: TranscriptAnalyzer | None = None,
        grouper: ArtifactGrouper | None = None,
        leadership_analyzer: LeadershipAnalyzer | None = None,
        *,
        meetings_prefix: str = "meetings/",
        signed_url_ttl: int = 3600,
        concurrency: int = 8,
        timeout_seconds: float = 30.0,
        display_cache_ttl: float = 1800,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._blob_store = blob_store
        self._merger = merger
        self._analyzer = analyzer or TranscriptAnalyzer()
        self._grouper = grouper or ArtifactGrouper()
        self._leadership_analyzer = leadership_analyzer
        self._prefix = meetings_prefix
        self._signed_url_ttl = signed_url_ttl
        self._concurrency = max(1, concurrency)
        self._timeout = timeout_seconds

        self._display_cache: TTLCacheSlot[list[MeetingRecord]] = TTLCacheSlot(
            display_cache_ttl, clock=clock or time.monotonic, name="display_meetings"
        )
        self._merger.add_invalidation_hook(self._on_meeting_changed)

    @property
    def merger(self) -> OverrideMerger:
        return self._merger

    def _on_meeting_changed(self, meeting_id: str) -> None:
        logger.debug("meetings.display_cache_invalidated", meeting_id=meeting_id)
        self._display_cache.invalidate()

    # ── Listing ───────────────────────────────────────────────────────────

    async def collect(self) -> MeetingListing:
        """Build every record under the meetings prefix, with diagnostics."""
        diagnostics = BatchDiagnostics()
        records = await self._group_records(diagnostics)
        if diagnostics.fatal:
            return MeetingListing(diagnostics=diagnostics)

        semaphore = asyncio.Semaphore(self._concurrency)

        async def enrich_guarded(record: MeetingRecord) -> MeetingRecord | None:
            async with semaphore:
                try:
                    return await self._enrich(record, diagnostics)
                except Exception as exc:
                    logger.error(
                        "meetings.record_enrichment_failed",
                        meeting_id=record.id,
                        exc_info=True,
                    )
                    artifact_failures_total.labels(stage="enrich").inc()
                    diagnostics.record(record.id, "enrich", exc)
                    return None

        enriched = await asyncio.gather(
            *(enrich_guarded(record) for record in records.values())
        )
        kept = [record for record in enriched if record is not None]

        logger.info(
            "meetings.collected",
            records=len(kept),
            relevant=sum(1 for r in kept if r.is_portfolio_relevant),
            failures=len(diagnostics.failures),
        )
        return MeetingListing(records=sort_records(kept), diagnostics=diagnostics)

    async def list_meeting_records(self) -> list[MeetingRecord]:
        return (await self.collect()).records

    async def get_meeting_record(self, meeting_id: str) -> MeetingRecord | None:
        for record in await self.list_meeting_records():
            if record.id == meeting_id:
                return record
        return None

    async def list_by_category(self, category: str) -> list[MeetingRecord]:
        return [r for r in await self.list_meeting_records() if r.category == category]

    async def meeting_categories(self) -> list[CategoryCount]:
        """Record counts per display category, in first-seen order."""
        counts = Counter(r.category for r in await self.list_meeting_records())
        return [
            CategoryCount(category=category, label=category_label(category), count=count)
            for category, count in counts.items()
        ]

    async def list_display_meetings(self) -> list[MeetingRecord]:
        """Portfolio-relevant records, cached until TTL expiry or a write."""

        async def compute() -> list[MeetingRecord]:
            listing = await self.collect()
            return [r for r in listing.records if r.is_portfolio_relevant]

        return await self._display_cache.get_or_compute(compute)

    # ── Analysis ──────────────────────────────────────────────────────────

    def classify(self, text: str, filename: str | None = None) -> ClassificationResult:
        return self._analyzer.classifier.classify(text, filename)

    async def reanalyze(self, meeting_id: str) -> AnalysisResult | None:
        """Recompute analysis for one meeting, bypassing and replacing the cache."""
        diagnostics = BatchDiagnostics()
        records = await self._group_records(diagnostics)
        record = records.get(meeting_id)
        if record is None or record.transcript is None:
            logger.warning(
                "meetings.reanalyze_not_found",
                meeting_id=meeting_id,
                listing_failed=diagnostics.fatal,
            )
            return None

        try:
            result = await self._merger.refresh(
                meeting_id, lambda: self._analyze_transcript(record)
            )
        except (asyncio.TimeoutError, StorageUnavailableError):
            logger.warning(
                "meetings.reanalyze_failed",
                meeting_id=meeting_id,
                exc_info=True,
            )
            return None

        logger.info("meetings.reanalyzed", meeting_id=meeting_id, found=result is not None)
        return result

    # ── Internals ─────────────────────────────────────────────────────────

    async def _group_records(
        self, diagnostics: BatchDiagnostics
    ) -> dict[str, MeetingRecord]:
        try:
            objects = await asyncio.wait_for(
                self._blob_store.list(self._prefix), timeout=self._timeout
            )
        except Exception as exc:
            logger.error(
                "meetings.listing_failed",
                prefix=self._prefix,
                exc_info=True,
            )
            artifact_failures_total.labels(stage="list").inc()
            diagnostics.fatal = True
            diagnostics.record(self._prefix, "list", exc)
            return {}

        return self._grouper.group(self._to_artifacts(objects))

    @staticmethod
    def _to_artifacts(objects: list[BlobObject]) -> list[RawArtifact]:
        artifacts: list[RawArtifact] = []
        for obj in objects:
            filename = filename_from_key(obj.key)
            artifact_type = detect_artifact_type(filename)
            if artifact_type is None:
                continue
            artifacts_listed_total.labels(artifact_type=artifact_type.value).inc()
            artifacts.append(
                RawArtifact(
                    key=obj.key,
                    filename=filename,
                    type=artifact_type,
                    size=obj.size,
                    last_modified=obj.last_modified,
                )
            )
        return artifacts

    async def _enrich(
        self, record: MeetingRecord, diagnostics: BatchDiagnostics
    ) -> MeetingRecord:
        await self._sign_urls(record, diagnostics)

        summary_text: str | None = None
        if record.summary is not None:
            summary_text = await self._read_optional(
                record.id, record.summary.key, "summary", diagnostics
            )

        result: AnalysisResult | None = None
        if record.transcript is not None:
            try:
                result = await self._merger.get_or_analyze(
                    record.id, lambda: self._analyze_transcript(record)
                )
            except (asyncio.TimeoutError, StorageUnavailableError) as exc:
                logger.warning(
                    "meetings.transcript_unavailable",
                    meeting_id=record.id,
                    error=str(exc),
                )
                artifact_failures_total.labels(stage="transcript").inc()
                diagnostics.record(record.id, "transcript", exc)

        classification = result.insights.classification if result else None
        resolution = await self._merger.resolve_relevance(record.id, classification)

        record.classification = classification
        record.category = display_category(classification.category if classification else None)
        record.is_portfolio_relevant = resolution.is_portfolio_relevant
        record.override_applied = resolution.source == RelevanceSource.OVERRIDE

        if result is not None:
            insights = result.insights
            record.insights = insights
            record.leadership = result.leadership
            if insights.is_portfolio_relevant:
                record.title = insights.title or record.title
                record.participants = insights.participants or record.participants

        record.description = (
            resolution.description
            or summary_description(summary_text)
            or (record.insights.description if record.insights else "")
            or ""
        )
        return record

    async def _sign_urls(
        self, record: MeetingRecord, diagnostics: BatchDiagnostics
    ) -> None:
        for artifact in record.artifacts():
            try:
                artifact.url = await asyncio.wait_for(
                    self._blob_store.get_signed_url(artifact.key, self._signed_url_ttl),
                    timeout=self._timeout,
                )
            except Exception as exc:
                logger.warning(
                    "meetings.sign_url_failed",
                    meeting_id=record.id,
                    key=artifact.key,
                    error=str(exc),
                )
                artifact_failures_total.labels(stage="sign_url").inc()
                diagnostics.record(record.id, "sign_url", exc)
                artifact.url = ""

    async def _read_optional(
        self,
        meeting_id: str,
        key: str,
        stage: str,
        diagnostics: BatchDiagnostics,
    ) -> str | None:
        try:
            return await asyncio.wait_for(
                self._blob_store.get_content(key), timeout=self._timeout
            )
        except Exception as exc:
            logger.warning(
                "meetings.content_read_failed",
                meeting_id=meeting_id,
                key=key,
                error=str(exc),
            )
            artifact_failures_total.labels(stage=stage).inc()
            diagnostics.record(meeting_id, stage, exc)
            return None

    async def _analyze_transcript(self, record: MeetingRecord) -> AnalysisResult | None:
        transcript = record.transcript
        if transcript is None:
            return None

        content = await asyncio.wait_for(
            self._blob_store.get_content(transcript.key), timeout=self._timeout
        )
        if content is None:
            logger.warning(
                "meetings.transcript_missing",
                meeting_id=record.id,
                key=transcript.key,
            )
            return None

        insights = self._analyzer.analyze(content, transcript.filename)
        leadership = None
        if insights.is_portfolio_relevant:
            leadership = await self._run_leadership(record, content)

        return AnalysisResult(
            meeting_id=record.id,
            insights=insights,
            leadership=leadership,
        )

    async def _run_leadership(
        self, record: MeetingRecord, transcript: str
    ) -> dict[str, Any] | None:
        if self._leadership_analyzer is None:
            return None
        try:
            return await asyncio.wait_for(
                self._leadership_analyzer.analyze(record, transcript),
                timeout=self._timeout,
            )
        except Exception:
            logger.warning(
                "meetings.leadership_analysis_failed",
                meeting_id=record.id,
                exc_info=True,
            )
            return None


__all__ = [
    "LeadershipAnalyzer",
    "MeetingLibrary",
    "category_label",
    "sort_records",
    "summary_description",
]
