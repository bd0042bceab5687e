"""Batch link suggestions between videos and projects.

Scores the cross-product of filtered videos and projects, drops pairs below
the minimum score (and optionally pairs that are already linked), and
returns the best matches first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from src.meeting_intel.matching.schemas import (
    ExistingLink,
    ProjectEntity,
    Suggestion,
    SuggestionFilters,
    VideoEntity,
)
from src.meeting_intel.matching.scorer import ProjectVideoMatcher

logger = structlog.get_logger(__name__)

SINGLE_ENTITY_MIN_SCORE = 4
SINGLE_ENTITY_LIMIT = 10


class SuggestionService:
    """Generates ranked video/project link suggestions.

    Args:
        matcher: Pair scorer. A default ProjectVideoMatcher is built if None.
    """

    def __init__(self, matcher: ProjectVideoMatcher | None = None) -> None:
        self._matcher = matcher or ProjectVideoMatcher()

    def suggest_links(
        self,
        videos: Sequence[VideoEntity],
        projects: Sequence[ProjectEntity],
        existing_links: Iterable[ExistingLink] = (),
        filters: SuggestionFilters | None = None,
    ) -> list[Suggestion]:
        """Score every eligible pair and return the top ``filters.limit``.

        Sorting is by score descending and stable, so equal scores keep
        video-major input order.
        """
        filters = filters or SuggestionFilters()
        linked = {(link.video_id, link.project_id) for link in existing_links}

        eligible_videos = [
            v for v in videos
            if filters.video_types is None or v.type in filters.video_types
        ]
        eligible_projects = [
            p for p in projects
            if filters.project_categories is None
            or p.category in filters.project_categories
        ]

        suggestions: list[Suggestion] = []
        for video in eligible_videos:
            for project in eligible_projects:
                if filters.exclude_existing_links and (video.id, project.id) in linked:
                    continue
                suggestion = self._matcher.score(video, project)
                if suggestion.score >= filters.min_score:
                    suggestions.append(suggestion)

        ranked = sorted(suggestions, key=lambda s: s.score, reverse=True)
        logger.info(
            "suggestions.generated",
            videos=len(eligible_videos),
            projects=len(eligible_projects),
            candidates=len(suggestions),
            returned=min(len(ranked), filters.limit),
        )
        return ranked[: filters.limit]

    def suggestions_for_video(
        self,
        video: VideoEntity,
        projects: Sequence[ProjectEntity],
        existing_links: Iterable[ExistingLink] = (),
    ) -> list[Suggestion]:
        return self.suggest_links(
            [video],
            projects,
            existing_links,
            SuggestionFilters(
                min_score=SINGLE_ENTITY_MIN_SCORE,
                exclude_existing_links=True,
                limit=SINGLE_ENTITY_LIMIT,
            ),
        )

    def suggestions_for_project(
        self,
        project: ProjectEntity,
        videos: Sequence[VideoEntity],
        existing_links: Iterable[ExistingLink] = (),
    ) -> list[Suggestion]:
        return self.suggest_links(
            videos,
            [project],
            existing_links,
            SuggestionFilters(
                min_score=SINGLE_ENTITY_MIN_SCORE,
                exclude_existing_links=True,
                limit=SINGLE_ENTITY_LIMIT,
            ),
        )


__all__ = ["SuggestionService"]
