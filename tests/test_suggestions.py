"""Unit tests for SuggestionService and the record-to-video adapters.

Scores used below (clock pinned):
    architecture video x ledger project  -> 10
    architecture video x stream project  -> 10
    career video       x ledger project  -> 7
    career video       x stream project  -> 7
"""

from __future__ import annotations

import pytest

from src.meeting_intel.matching.adapters import (
    video_from_record,
    video_type_for,
    videos_from_records,
)
from src.meeting_intel.matching.schemas import (
    ExistingLink,
    SuggestionFilters,
    VideoEntity,
    VideoType,
)
from src.meeting_intel.matching.scorer import ProjectVideoMatcher
from src.meeting_intel.matching.suggestions import SuggestionService
from src.meeting_intel.meetings.schemas import (
    ClassificationResult,
    KeyMoment,
    KeyMomentType,
    MeetingCategory,
    MeetingInsights,
    MeetingRecord,
)


@pytest.fixture
def service(matcher: ProjectVideoMatcher) -> SuggestionService:
    return SuggestionService(matcher)


def _pairs(suggestions) -> list[tuple[str, str]]:
    return [(s.video_id, s.project_id) for s in suggestions]


# ── Batch Suggestions ────────────────────────────────────────────────────────


class TestSuggestLinks:
    def test_ranked_by_score_then_input_order(
        self,
        service: SuggestionService,
        architecture_video,
        career_video,
        ledger_project,
        stream_project,
    ) -> None:
        suggestions = service.suggest_links(
            [career_video, architecture_video],
            [ledger_project, stream_project],
        )
        assert _pairs(suggestions) == [
            ("s3-arch", "ledger"),
            ("s3-arch", "stream"),
            ("s3-career", "ledger"),
            ("s3-career", "stream"),
        ]
        assert [s.score for s in suggestions] == [10, 10, 7, 7]

    def test_min_score_drops_weak_pairs(
        self,
        service: SuggestionService,
        architecture_video,
        career_video,
        ledger_project,
        stream_project,
    ) -> None:
        suggestions = service.suggest_links(
            [architecture_video, career_video],
            [ledger_project, stream_project],
            filters=SuggestionFilters(min_score=8),
        )
        assert _pairs(suggestions) == [("s3-arch", "ledger"), ("s3-arch", "stream")]

    def test_existing_links_only_excluded_when_requested(
        self, service: SuggestionService, architecture_video, ledger_project, stream_project
    ) -> None:
        links = [ExistingLink(video_id="s3-arch", project_id="ledger")]
        videos = [architecture_video]
        projects = [ledger_project, stream_project]

        kept = service.suggest_links(videos, projects, links, SuggestionFilters(min_score=8))
        excluded = service.suggest_links(
            videos,
            projects,
            links,
            SuggestionFilters(min_score=8, exclude_existing_links=True),
        )

        assert len(kept) == 2
        assert _pairs(excluded) == [("s3-arch", "stream")]

    def test_video_type_and_category_filters(
        self,
        service: SuggestionService,
        architecture_video,
        career_video,
        ledger_project,
        stream_project,
    ) -> None:
        videos = [architecture_video, career_video]
        projects = [ledger_project, stream_project]

        mentoring_only = service.suggest_links(
            videos, projects, filters=SuggestionFilters(video_types=[VideoType.MENTORING])
        )
        ai_only = service.suggest_links(
            videos, projects, filters=SuggestionFilters(project_categories=["ai"])
        )

        assert _pairs(mentoring_only) == [("s3-career", "ledger"), ("s3-career", "stream")]
        assert _pairs(ai_only) == [("s3-arch", "stream"), ("s3-career", "stream")]

    def test_limit(
        self,
        service: SuggestionService,
        architecture_video,
        career_video,
        ledger_project,
        stream_project,
    ) -> None:
        suggestions = service.suggest_links(
            [architecture_video, career_video],
            [ledger_project, stream_project],
            filters=SuggestionFilters(limit=1),
        )
        assert _pairs(suggestions) == [("s3-arch", "ledger")]

    def test_empty_inputs(
        self, service: SuggestionService, ledger_project
    ) -> None:
        assert service.suggest_links([], [ledger_project]) == []


class TestSingleEntity:
    def test_for_video_excludes_existing_links(
        self, service: SuggestionService, career_video, ledger_project, stream_project
    ) -> None:
        links = [ExistingLink(video_id="s3-career", project_id="ledger")]
        suggestions = service.suggestions_for_video(
            career_video, [ledger_project, stream_project], links
        )
        assert _pairs(suggestions) == [("s3-career", "stream")]

    def test_for_project_is_capped_at_ten(
        self, service: SuggestionService, stream_project
    ) -> None:
        videos = [
            VideoEntity(id=f"s3-chat-{i}", type=VideoType.MENTORING, title="Career chat")
            for i in range(12)
        ]
        suggestions = service.suggestions_for_project(stream_project, videos)
        assert len(suggestions) == 10
        assert suggestions[0].video_id == "s3-chat-0"


# ── Adapters ─────────────────────────────────────────────────────────────────


def _record(meeting_id: str, category: str, relevant: bool) -> MeetingRecord:
    insights = MeetingInsights(
        classification=ClassificationResult(
            category=MeetingCategory.ARCHITECTURE_REVIEW,
            confidence=0.9,
            reason="Detected 5 relevant indicators for architecture review",
        ),
        key_moments=[
            KeyMoment(
                timestamp="00:00",
                description="We decided to split the ledger service",
                type=KeyMomentType.DECISION,
                importance=7,
            ),
            KeyMoment(
                timestamp="18:00",
                description="The database layer needs caching",
                type=KeyMomentType.TECHNICAL,
                importance=6,
            ),
        ],
    )
    return MeetingRecord(
        id=meeting_id,
        title="Ledger design",
        date_recorded="2024-03-01",
        participants=["Alice", "Bob"],
        category=category,
        is_portfolio_relevant=relevant,
        description="Split ledger service",
        insights=insights,
    )


class TestAdapters:
    @pytest.mark.parametrize(
        "category,expected",
        [
            ("architecture-review", VideoType.ARCHITECTURE),
            ("leadership-moment", VideoType.LEADERSHIP),
            ("mentoring-session", VideoType.MENTORING),
            ("technical-discussion", VideoType.TECHNICAL),
            ("code-review", VideoType.TECHNICAL),
            ("uncategorized", VideoType.TECHNICAL),
            (None, VideoType.TECHNICAL),
        ],
    )
    def test_video_type_for(self, category, expected: VideoType) -> None:
        assert video_type_for(category) == expected

    def test_video_from_record(self) -> None:
        video = video_from_record(_record("ledger_2024-03-01", "architecture-review", True))

        assert video.id == "s3-ledger_2024-03-01"
        assert video.type == VideoType.ARCHITECTURE
        assert video.participants == ["Alice", "Bob"]
        assert [m.type for m in video.key_moments] == ["leadership", "technical"]

    def test_only_relevant_records_become_videos(self) -> None:
        records = [
            _record("a", "architecture-review", True),
            _record("b", "uncategorized", False),
        ]
        assert [v.id for v in videos_from_records(records)] == ["s3-a"]
