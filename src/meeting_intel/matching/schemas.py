"""Pydantic v2 schemas for video/project matching."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class VideoType(str, Enum):
    """Portfolio video kinds, derived from meeting categories."""

    ARCHITECTURE = "architecture"
    TECHNICAL = "technical"
    LEADERSHIP = "leadership"
    MENTORING = "mentoring"


class LinkType(str, Enum):
    ARCHITECTURE_REVIEW = "architecture-review"
    TECHNICAL_DISCUSSION = "technical-discussion"
    MENTORING_SESSION = "mentoring-session"
    PLANNING = "planning"


class ConfidenceBucket(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class VideoMoment(BaseModel):
    """Key moment as shown on a video."""

    timestamp: str
    description: str
    type: str


class VideoEntity(BaseModel):
    """A portfolio video that can be linked to projects."""

    id: str
    type: VideoType
    title: str
    description: str = ""
    key_moments: list[VideoMoment] = Field(default_factory=list)
    participants: list[str] = Field(default_factory=list)


class ProjectEntity(BaseModel):
    """A portfolio project (repository) that videos can be linked to."""

    id: str
    title: str
    description: str = ""
    tech_stack: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    category: str = ""
    language: str | None = None
    stars: int = 0
    last_updated: datetime


class ExistingLink(BaseModel):
    video_id: str
    project_id: str


class Suggestion(BaseModel):
    """A scored video/project pair proposed as a cross-reference."""

    video_id: str
    project_id: str
    video_title: str
    project_title: str
    score: int = Field(ge=1, le=10)
    link_type: LinkType
    confidence_bucket: ConfidenceBucket
    reasons: list[str] = Field(default_factory=list)
    breakdown: dict[str, int] = Field(default_factory=dict)


class SuggestionFilters(BaseModel):
    """Batch suggestion options."""

    min_score: int = 5
    project_categories: list[str] | None = None
    video_types: list[VideoType] | None = None
    exclude_existing_links: bool = False
    limit: int = 50


__all__ = [
    "ConfidenceBucket",
    "ExistingLink",
    "LinkType",
    "ProjectEntity",
    "Suggestion",
    "SuggestionFilters",
    "VideoEntity",
    "VideoMoment",
    "VideoType",
]
