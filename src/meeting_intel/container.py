"""Application wiring -- build the library graph once at startup.

Hosts call ``build_container()`` during startup, keep the returned
Container for the process lifetime, and ``await container.aclose()`` on
shutdown. Collaborators can be swapped via keyword arguments (tests pass
in-memory stores).
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from src.meeting_intel.analysis.merge import OverrideMerger
from src.meeting_intel.analysis.stores import (
    AnalysisStore,
    BlobAnalysisStore,
    OverrideStore,
    RedisAnalysisStore,
)
from src.meeting_intel.analysis.transcript import TranscriptAnalyzer
from src.meeting_intel.config import AnalysisCacheBackend, Settings, get_settings
from src.meeting_intel.core.database import close_db, get_session
from src.meeting_intel.core.redis import close_redis, get_redis_pool
from src.meeting_intel.matching.suggestions import SuggestionService
from src.meeting_intel.meetings.blob_store import BlobStore, S3BlobStore
from src.meeting_intel.meetings.library import LeadershipAnalyzer, MeetingLibrary
from src.meeting_intel.meetings.repository import OverrideRepository

logger = structlog.get_logger(__name__)


@dataclass
class Container:
    """Long-lived library components shared by a host process."""

    settings: Settings
    blob_store: BlobStore
    analysis_store: AnalysisStore
    override_store: OverrideStore
    merger: OverrideMerger
    analyzer: TranscriptAnalyzer
    library: MeetingLibrary
    suggestions: SuggestionService

    async def aclose(self) -> None:
        await close_redis()
        await close_db()


def build_analysis_store(settings: Settings, blob_store: BlobStore) -> AnalysisStore:
    """Select the analysis cache backend named by ANALYSIS_CACHE_BACKEND."""
    if settings.ANALYSIS_CACHE_BACKEND == AnalysisCacheBackend.redis:
        return RedisAnalysisStore(get_redis_pool())
    return BlobAnalysisStore(blob_store, prefix=settings.S3_ANALYSIS_PREFIX)


def build_container(
    settings: Settings | None = None,
    *,
    blob_store: BlobStore | None = None,
    analysis_store: AnalysisStore | None = None,
    override_store: OverrideStore | None = None,
    leadership_analyzer: LeadershipAnalyzer | None = None,
) -> Container:
    settings = settings or get_settings()

    blob_store = blob_store or S3BlobStore(
        settings.S3_BUCKET,
        region_name=settings.AWS_REGION,
        max_attempts=settings.STORAGE_MAX_ATTEMPTS,
    )
    analysis_store = analysis_store or build_analysis_store(settings, blob_store)
    override_store = override_store or OverrideRepository(get_session)

    merger = OverrideMerger(
        analysis_store,
        override_store,
        timeout_seconds=settings.STORAGE_TIMEOUT_SECONDS,
    )
    analyzer = TranscriptAnalyzer()
    library = MeetingLibrary(
        blob_store,
        merger,
        analyzer,
        leadership_analyzer=leadership_analyzer,
        meetings_prefix=settings.S3_MEETINGS_PREFIX,
        signed_url_ttl=settings.SIGNED_URL_TTL_SECONDS,
        concurrency=settings.FETCH_CONCURRENCY,
        timeout_seconds=settings.STORAGE_TIMEOUT_SECONDS,
        display_cache_ttl=settings.DISPLAY_CACHE_TTL_SECONDS,
    )

    logger.info(
        "container.built",
        environment=settings.ENVIRONMENT.value,
        analysis_backend=settings.ANALYSIS_CACHE_BACKEND.value,
        bucket=settings.S3_BUCKET,
    )
    return Container(
        settings=settings,
        blob_store=blob_store,
        analysis_store=analysis_store,
        override_store=override_store,
        merger=merger,
        analyzer=analyzer,
        library=library,
        suggestions=SuggestionService(),
    )


__all__ = ["Container", "build_analysis_store", "build_container"]
