"""Shared test doubles and fixtures.

Provides in-memory implementations of the storage contracts:
- InMemoryBlobStore: BlobStore with per-key failure and latency injection
- InMemoryAnalysisStore: AnalysisStore backed by a dict
- InMemoryOverrideStore: OverrideStore backed by a dict

No network, S3, Redis, or database dependency.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.meeting_intel.analysis.merge import OverrideMerger
from src.meeting_intel.core.errors import StorageUnavailableError
from src.meeting_intel.matching.schemas import (
    ProjectEntity,
    VideoEntity,
    VideoMoment,
    VideoType,
)
from src.meeting_intel.matching.scorer import ProjectVideoMatcher
from src.meeting_intel.meetings.blob_store import BlobObject
from src.meeting_intel.meetings.schemas import AnalysisResult, OverrideSetting

LISTED_AT = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

ARCH_TRANSCRIPT = """Alice: Today we review the database architecture for the billing service.
Bob: The microservices split improves scalability because each service owns its data.
Alice: We decided to adopt an event driven architecture for the ledger.
Bob: Performance and optimization of the query layer need more work on the infrastructure.
Alice: The system architecture should stay modular so scalability is not limited.
"""

MENTORING_TRANSCRIPT = """Carol: Our mentoring conversation covered career growth and feedback for the junior engineers.
Dave: Coaching on learning and guidance helped their technical skills.
"""

STANDUP_TRANSCRIPT = (
    "Quick standup to review the sprint board and blockers for the mobile team today."
)


# ── Blob Store Double ────────────────────────────────────────────────────────


class InMemoryBlobStore:
    """Dict-backed BlobStore.

    Failure injection:
        fail_list: list() raises StorageUnavailableError.
        fail_content: keys whose get_content() raises StorageUnavailableError.
        fail_sign: keys whose get_signed_url() raises StorageUnavailableError.
        slow_keys: keys whose get_content() sleeps ``delay`` seconds first.
    """

    def __init__(self, objects: dict[str, str | None] | None = None) -> None:
        self.objects: dict[str, str | None] = dict(objects or {})
        self.fail_list = False
        self.fail_content: set[str] = set()
        self.fail_sign: set[str] = set()
        self.slow_keys: set[str] = set()
        self.delay = 1.0
        self.list_calls = 0
        self.reads: list[str] = []
        self.writes: list[str] = []

    async def list(self, prefix: str) -> list[BlobObject]:
        self.list_calls += 1
        if self.fail_list:
            raise StorageUnavailableError("memory", "list", "injected")
        return [
            BlobObject(key=key, size=len(body or ""), last_modified=LISTED_AT)
            for key, body in self.objects.items()
            if key.startswith(prefix)
        ]

    async def get_content(self, key: str) -> str | None:
        self.reads.append(key)
        if key in self.slow_keys:
            await asyncio.sleep(self.delay)
        if key in self.fail_content:
            raise StorageUnavailableError("memory", "get_content", key)
        return self.objects.get(key)

    async def get_signed_url(self, key: str, ttl: int) -> str:
        if key in self.fail_sign:
            raise StorageUnavailableError("memory", "get_signed_url", key)
        return f"https://signed.example/{key}?ttl={ttl}"

    async def put(self, key: str, body: str | bytes, content_type: str) -> None:
        self.writes.append(key)
        self.objects[key] = body.decode("utf-8") if isinstance(body, bytes) else body

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


# ── Analysis & Override Store Doubles ────────────────────────────────────────


class InMemoryAnalysisStore:
    """Dict-backed AnalysisStore. Set ``get_error`` / ``put_error`` to fail."""

    def __init__(self) -> None:
        self.results: dict[str, AnalysisResult] = {}
        self.get_error: BaseException | None = None
        self.put_error: BaseException | None = None
        self.get_delay = 0.0

    async def get(self, meeting_id: str) -> AnalysisResult | None:
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        if self.get_error is not None:
            raise self.get_error
        return self.results.get(meeting_id)

    async def put(self, meeting_id: str, result: AnalysisResult) -> None:
        if self.put_error is not None:
            raise self.put_error
        self.results[meeting_id] = result


class InMemoryOverrideStore:
    """Dict-backed OverrideStore. Set ``get_error`` / ``put_error`` to fail."""

    def __init__(self) -> None:
        self.settings: dict[str, OverrideSetting] = {}
        self.get_error: BaseException | None = None
        self.put_error: BaseException | None = None

    async def get(self, meeting_id: str) -> OverrideSetting | None:
        if self.get_error is not None:
            raise self.get_error
        return self.settings.get(meeting_id)

    async def put(self, setting: OverrideSetting) -> None:
        if self.put_error is not None:
            raise self.put_error
        self.settings[setting.meeting_id] = setting


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def analysis_store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


@pytest.fixture
def override_store() -> InMemoryOverrideStore:
    return InMemoryOverrideStore()


@pytest.fixture
def merger(
    analysis_store: InMemoryAnalysisStore,
    override_store: InMemoryOverrideStore,
) -> OverrideMerger:
    return OverrideMerger(analysis_store, override_store, timeout_seconds=0.2)


@pytest.fixture
def arch_transcript() -> str:
    return ARCH_TRANSCRIPT


@pytest.fixture
def mentoring_transcript() -> str:
    return MENTORING_TRANSCRIPT


@pytest.fixture
def standup_transcript() -> str:
    return STANDUP_TRANSCRIPT


# ── Matching Fixtures ────────────────────────────────────────────────────────

MATCH_NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def match_clock() -> datetime:
    return MATCH_NOW


@pytest.fixture
def architecture_video() -> VideoEntity:
    return VideoEntity(
        id="s3-arch",
        type=VideoType.ARCHITECTURE,
        title="Architecture Review Session: Microservices & Architecture",
        description="Deep dive into system architecture, design patterns, and technical decisions.",
        key_moments=[
            VideoMoment(
                timestamp="00:00",
                description="We moved the python fastapi services onto postgresql",
                type="technical",
            )
        ],
        participants=["Alice", "Bob", "Carol"],
    )


@pytest.fixture
def career_video() -> VideoEntity:
    return VideoEntity(id="s3-career", type=VideoType.MENTORING, title="Career chat")


@pytest.fixture
def make_ledger_project():
    """Factory for the well-aligned project; keyword args override fields."""

    def _make(**overrides) -> ProjectEntity:
        fields = dict(
            id="ledger",
            title="Ledger Platform",
            description="Scalable microservices architecture with a secure API layer and database design.",
            tech_stack=["Python", "FastAPI", "PostgreSQL"],
            topics=["microservices", "api"],
            category="architecture",
            language="Python",
            stars=60,
            last_updated=MATCH_NOW - timedelta(days=5),
        )
        fields.update(overrides)
        return ProjectEntity(**fields)

    return _make


@pytest.fixture
def ledger_project(make_ledger_project) -> ProjectEntity:
    return make_ledger_project()


@pytest.fixture
def stream_project() -> ProjectEntity:
    return ProjectEntity(
        id="stream",
        title="Stream Engine",
        tech_stack=["Rust", "Kafka", "Redis"],
        category="ai",
        stars=60,
        last_updated=MATCH_NOW - timedelta(days=2),
    )


@pytest.fixture
def matcher() -> ProjectVideoMatcher:
    return ProjectVideoMatcher(clock=match_clock)
