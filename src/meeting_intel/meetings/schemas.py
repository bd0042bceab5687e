"""Pydantic v2 schemas for meeting ingestion and transcript analysis.

Defines the data contracts shared by the grouper, classifier, key-moment
extractor, override merger, and MeetingLibrary. Persisted shapes
(AnalysisResult, OverrideSetting) round-trip through model_dump(mode="json")
and model_validate().
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ── Enums ────────────────────────────────────────────────────────────────────


class ArtifactType(str, Enum):
    """Kind of file found under the meetings prefix."""

    VIDEO = "video"
    TRANSCRIPT = "transcript"
    SUMMARY = "summary"


class MeetingCategory(str, Enum):
    """Classifier output. SKIP marks a transcript as not portfolio material."""

    ARCHITECTURE_REVIEW = "architecture-review"
    TECHNICAL_DISCUSSION = "technical-discussion"
    MENTORING_SESSION = "mentoring-session"
    LEADERSHIP_MOMENT = "leadership-moment"
    CODE_REVIEW = "code-review"
    SKIP = "skip"


class KeyMomentType(str, Enum):
    """Topic group a key moment was detected under."""

    ARCHITECTURE = "architecture"
    LEADERSHIP = "leadership"
    TECHNICAL = "technical"
    MENTORING = "mentoring"
    DECISION = "decision"


class RelevanceSource(str, Enum):
    """Where a portfolio-relevance verdict came from."""

    OVERRIDE = "override"
    CLASSIFIER = "classifier"


UNCATEGORIZED = "uncategorized"


def display_category(category: MeetingCategory | None) -> str:
    """Map a classifier category to the label shown to hosts.

    SKIP and missing analysis both display as "uncategorized".
    """
    if category is None or category == MeetingCategory.SKIP:
        return UNCATEGORIZED
    return category.value


# ── Artifacts & Records ──────────────────────────────────────────────────────


class RawArtifact(BaseModel):
    """A single object in the blob store recognised as a meeting artifact."""

    key: str
    filename: str
    type: ArtifactType
    size: int = 0
    last_modified: datetime
    url: str = Field("", description="Signed URL, empty when signing failed")


class ClassificationResult(BaseModel):
    """Verdict of the rule-based transcript classifier."""

    category: MeetingCategory
    confidence: float = Field(ge=0.0, le=0.9)
    reason: str

    @property
    def is_relevant(self) -> bool:
        return self.category != MeetingCategory.SKIP


class KeyMoment(BaseModel):
    """A notable sentence in a transcript with a synthesized position."""

    timestamp: str = Field(description="mm:ss, estimated from sentence position")
    description: str
    type: KeyMomentType
    importance: int = Field(ge=1, le=10)


class MeetingInsights(BaseModel):
    """Full rule-based analysis of one transcript."""

    classification: ClassificationResult
    key_moments: list[KeyMoment] = Field(default_factory=list)
    participants: list[str] = Field(default_factory=list)
    technical_topics: list[str] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    duration: str = "0:00"
    title: str = ""
    description: str = ""
    is_portfolio_relevant: bool = False


class AnalysisResult(BaseModel):
    """Cached analysis document, keyed by meeting id."""

    meeting_id: str
    insights: MeetingInsights
    leadership: dict[str, Any] | None = None
    analyzed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class OverrideSetting(BaseModel):
    """Manual portfolio-relevance decision for a meeting."""

    meeting_id: str
    is_portfolio_relevant: bool
    description: str | None = None
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class RelevanceResolution(BaseModel):
    """Effective relevance after applying any override."""

    meeting_id: str
    is_portfolio_relevant: bool
    category: MeetingCategory | None = None
    source: RelevanceSource = RelevanceSource.CLASSIFIER
    description: str | None = None


class MeetingRecord(BaseModel):
    """A logical meeting assembled from artifacts sharing a group key."""

    id: str
    title: str
    date_recorded: str = Field(description="YYYY-MM-DD")
    participants: list[str] = Field(default_factory=list)
    video: RawArtifact | None = None
    transcript: RawArtifact | None = None
    summary: RawArtifact | None = None
    category: str = UNCATEGORIZED
    is_portfolio_relevant: bool = False
    description: str = ""
    insights: MeetingInsights | None = None
    classification: ClassificationResult | None = None
    leadership: dict[str, Any] | None = None
    override_applied: bool = False

    def artifacts(self) -> list[RawArtifact]:
        """Artifacts present on this record, in video/transcript/summary order."""
        return [a for a in (self.video, self.transcript, self.summary) if a]


# ── Batch Diagnostics ────────────────────────────────────────────────────────


class ItemFailure(BaseModel):
    """A per-item failure absorbed by a batch operation."""

    item_id: str
    stage: str
    error: str


class BatchDiagnostics(BaseModel):
    """Failures collected while building a listing."""

    failures: list[ItemFailure] = Field(default_factory=list)
    fatal: bool = False

    def record(self, item_id: str, stage: str, error: BaseException | str) -> None:
        self.failures.append(
            ItemFailure(item_id=item_id, stage=stage, error=str(error))
        )


class CategoryCount(BaseModel):
    """Number of records per display category."""

    category: str
    label: str
    count: int


class MeetingListing(BaseModel):
    """Records from one collect() pass plus what went wrong along the way."""

    records: list[MeetingRecord] = Field(default_factory=list)
    diagnostics: BatchDiagnostics = Field(default_factory=BatchDiagnostics)


__all__ = [
    "UNCATEGORIZED",
    "AnalysisResult",
    "ArtifactType",
    "BatchDiagnostics",
    "CategoryCount",
    "ClassificationResult",
    "ItemFailure",
    "KeyMoment",
    "KeyMomentType",
    "MeetingCategory",
    "MeetingInsights",
    "MeetingListing",
    "MeetingRecord",
    "OverrideSetting",
    "RawArtifact",
    "RelevanceResolution",
    "RelevanceSource",
    "display_category",
]
