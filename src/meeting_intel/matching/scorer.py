"""Deterministic video/project relevance scoring.

Computes a 1-10 relevance score for a (video, project) pair from five
sub-scores, each on a 0-10 scale:

    raw = tech*3 + topic*2.5 + keyword*2 + complexity*1.5 + type*1

The raw composite is rounded half-up and clamped to [1, 10]. The scorer is
a pure function of its inputs and the injected clock (used only for the
project-recency complexity bonus).

Exports:
    ProjectVideoMatcher: Pair scorer producing Suggestion objects with
        reasons, link type, confidence bucket, and a sub-score breakdown.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from src.meeting_intel.matching.schemas import (
    ConfidenceBucket,
    LinkType,
    ProjectEntity,
    Suggestion,
    VideoEntity,
    VideoType,
)

TECH_TERMS: tuple[str, ...] = (
    "javascript", "typescript", "python", "java", "go", "rust", "react", "vue",
    "angular", "node", "express", "fastapi", "django", "flask", "docker",
    "kubernetes", "aws", "azure", "postgresql", "mysql", "mongodb", "redis",
    "elasticsearch", "kafka", "microservices", "api", "rest", "graphql",
    "websocket", "grpc",
)

IMPORTANT_KEYWORDS: tuple[str, ...] = (
    "scalable", "microservices", "api", "database", "performance",
    "architecture", "design", "system", "implementation", "optimization",
    "security", "deployment", "integration", "testing", "monitoring",
)

TOPIC_CATEGORY_MAP: dict[VideoType, frozenset[str]] = {
    VideoType.ARCHITECTURE: frozenset({"architecture", "systems"}),
    VideoType.TECHNICAL: frozenset({"ai", "systems", "architecture"}),
    VideoType.LEADERSHIP: frozenset({"leadership", "systems"}),
    VideoType.MENTORING: frozenset({"leadership", "systems"}),
}

RECENT_UPDATE_WINDOW = timedelta(days=30)

_NON_WORD_RE = re.compile(r"[^\w\s]")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_tech_keywords(text: str) -> list[str]:
    """Vocabulary terms appearing anywhere in ``text``.

    Substring match, so "JavaScript" also yields "java" and "APIs" yields "api".
    """
    lowered = text.lower()
    return [term for term in TECH_TERMS if term in lowered]


def extract_words(text: str) -> list[str]:
    """Lowercased words longer than three characters, punctuation removed."""
    return [w for w in _NON_WORD_RE.sub("", text.lower()).split() if len(w) > 3]


def _overlaps(a: str, b: str) -> bool:
    return a in b or b in a


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProjectVideoMatcher:
    """Score how well a video illustrates a project.

    Sub-score weights:
        tech:        3.0   (tech-stack overlap, language bonus)
        topic:       2.5   (video type vs project category, topic overlap)
        keyword:     2.0   (shared architecture/development vocabulary)
        complexity:  1.5   (project vs video complexity distance)
        type:        1.0   (video type appropriateness for the category)

    Args:
        clock: Returns "now" as an aware datetime; used for project recency.
    """

    TECH_WEIGHT = 3.0
    TOPIC_WEIGHT = 2.5
    KEYWORD_WEIGHT = 2.0
    COMPLEXITY_WEIGHT = 1.5
    TYPE_WEIGHT = 1.0

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    # ── Sub-scores ───────────────────────────────────────────────────────

    @staticmethod
    def _score_tech(video: VideoEntity, project: ProjectEntity) -> int:
        moments = " ".join(m.description for m in video.key_moments)
        keywords = extract_tech_keywords(f"{video.title} {video.description} {moments}")

        score = 0
        for tech in project.tech_stack:
            term = tech.strip().lower()
            if term and any(_overlaps(keyword, term) for keyword in keywords):
                score += 2

        if project.language and project.language.lower() in keywords:
            score += 3

        return min(10, score)

    @staticmethod
    def _score_topic(video: VideoEntity, project: ProjectEntity) -> int:
        score = 0
        if project.category in TOPIC_CATEGORY_MAP.get(video.type, frozenset()):
            score += 5

        words = extract_words(f"{video.title} {video.description}")
        for topic in project.topics:
            term = topic.strip().lower()
            if term and any(_overlaps(word, term) for word in words):
                score += 1

        return min(10, score)

    @staticmethod
    def _score_keyword(video: VideoEntity, project: ProjectEntity) -> int:
        video_text = f"{video.title} {video.description}".lower()
        project_text = f"{project.title} {project.description}".lower()

        shared = sum(
            1
            for keyword in IMPORTANT_KEYWORDS
            if keyword in video_text and keyword in project_text
        )
        score = shared * 2
        if shared >= 3:
            score += 2
        return min(10, score)

    def _project_complexity(self, project: ProjectEntity) -> int:
        complexity = 5 + min(3, len(project.tech_stack))
        if project.stars > 10:
            complexity += 1
        if project.stars > 50:
            complexity += 1

        last_updated = project.last_updated
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        if self._clock() - last_updated < RECENT_UPDATE_WINDOW:
            complexity += 1

        return min(10, complexity)

    @staticmethod
    def _video_complexity(video: VideoEntity) -> int:
        complexity = 5
        if video.type == VideoType.ARCHITECTURE:
            complexity += 2
        elif video.type == VideoType.TECHNICAL:
            complexity += 1
        if len(video.key_moments) > 3:
            complexity += 1
        if len(video.participants) > 2:
            complexity += 1
        return min(10, complexity)

    def _score_complexity(self, video: VideoEntity, project: ProjectEntity) -> int:
        distance = abs(self._project_complexity(project) - self._video_complexity(video))
        if distance <= 1:
            return 8
        if distance <= 2:
            return 5
        return 2

    @staticmethod
    def _score_type(video: VideoEntity, project: ProjectEntity) -> int:
        if video.type == VideoType.ARCHITECTURE and project.category in {"architecture", "systems"}:
            return 8
        if video.type == VideoType.TECHNICAL and project.category in {"ai", "systems", "architecture"}:
            return 7
        if video.type == VideoType.LEADERSHIP:
            return 5
        if video.type == VideoType.MENTORING:
            return 4
        return 3

    # ── Derivations ──────────────────────────────────────────────────────

    @staticmethod
    def _reasons(breakdown: dict[str, int]) -> list[str]:
        reasons: list[str] = []

        tech = breakdown["tech"]
        if tech > 0:
            label = "Strong tech stack alignment" if tech >= 3 else "Some tech stack overlap"
            reasons.append(f"{label} ({tech}/10)")

        topic = breakdown["topic"]
        if topic > 0:
            label = "High topic relevance" if topic >= 3 else "Related topics"
            reasons.append(f"{label} ({topic}/10)")

        keyword = breakdown["keyword"]
        if keyword > 0:
            label = "Strong content keywords match" if keyword >= 3 else "Some content similarity"
            reasons.append(f"{label} ({keyword}/10)")

        complexity = breakdown["complexity"]
        if complexity > 0:
            reasons.append(f"Architecture complexity match ({complexity}/10)")

        if breakdown["type"] >= 5:
            reasons.append("Appropriate video type for project")

        return reasons

    @staticmethod
    def _link_type(video: VideoEntity, score: int) -> LinkType:
        if video.type == VideoType.ARCHITECTURE or "architecture" in video.title.lower():
            return LinkType.ARCHITECTURE_REVIEW
        if video.type == VideoType.TECHNICAL or score >= 8:
            return LinkType.TECHNICAL_DISCUSSION
        if video.type == VideoType.MENTORING:
            return LinkType.MENTORING_SESSION
        return LinkType.PLANNING

    @staticmethod
    def _confidence(score: int, reason_count: int) -> ConfidenceBucket:
        if score >= 8 and reason_count >= 3:
            return ConfidenceBucket.HIGH
        if score >= 6 and reason_count >= 2:
            return ConfidenceBucket.MEDIUM
        return ConfidenceBucket.LOW

    # ── Public API ───────────────────────────────────────────────────────

    def breakdown(self, video: VideoEntity, project: ProjectEntity) -> dict[str, int]:
        """All five sub-scores for a pair, each on 0-10."""
        return {
            "tech": self._score_tech(video, project),
            "topic": self._score_topic(video, project),
            "keyword": self._score_keyword(video, project),
            "complexity": self._score_complexity(video, project),
            "type": self._score_type(video, project),
        }

    def raw_score(self, breakdown: dict[str, int]) -> float:
        return (
            breakdown["tech"] * self.TECH_WEIGHT
            + breakdown["topic"] * self.TOPIC_WEIGHT
            + breakdown["keyword"] * self.KEYWORD_WEIGHT
            + breakdown["complexity"] * self.COMPLEXITY_WEIGHT
            + breakdown["type"] * self.TYPE_WEIGHT
        )

    def score(self, video: VideoEntity, project: ProjectEntity) -> Suggestion:
        """Score one pair.

        Returns:
            Suggestion with the clamped score, reasons, link type,
            confidence bucket, and sub-score breakdown.
        """
        breakdown = self.breakdown(video, project)
        final = min(10, max(1, round_half_up(self.raw_score(breakdown))))
        reasons = self._reasons(breakdown)

        return Suggestion(
            video_id=video.id,
            project_id=project.id,
            video_title=video.title,
            project_title=project.title,
            score=final,
            link_type=self._link_type(video, final),
            confidence_bucket=self._confidence(final, len(reasons)),
            reasons=reasons,
            breakdown=breakdown,
        )


__all__ = [
    "IMPORTANT_KEYWORDS",
    "ProjectVideoMatcher",
    "TECH_TERMS",
    "extract_tech_keywords",
    "extract_words",
    "round_half_up",
]
