"""Adapt enriched MeetingRecords into matchable VideoEntities."""

from __future__ import annotations

from src.meeting_intel.matching.schemas import VideoEntity, VideoMoment, VideoType
from src.meeting_intel.meetings.schemas import (
    KeyMomentType,
    MeetingCategory,
    MeetingRecord,
)

CATEGORY_VIDEO_TYPES: dict[str, VideoType] = {
    MeetingCategory.ARCHITECTURE_REVIEW.value: VideoType.ARCHITECTURE,
    MeetingCategory.LEADERSHIP_MOMENT.value: VideoType.LEADERSHIP,
    MeetingCategory.MENTORING_SESSION.value: VideoType.MENTORING,
    MeetingCategory.TECHNICAL_DISCUSSION.value: VideoType.TECHNICAL,
}

VIDEO_ID_PREFIX = "s3-"


def video_type_for(category: str | None) -> VideoType:
    """Display category to video type; anything unmapped is technical."""
    return CATEGORY_VIDEO_TYPES.get(category or "", VideoType.TECHNICAL)


def video_from_record(record: MeetingRecord) -> VideoEntity:
    """Build the VideoEntity for a record; decision moments show as leadership."""
    moments: list[VideoMoment] = []
    if record.insights is not None:
        for moment in record.insights.key_moments:
            kind = (
                KeyMomentType.LEADERSHIP
                if moment.type == KeyMomentType.DECISION
                else moment.type
            )
            moments.append(
                VideoMoment(
                    timestamp=moment.timestamp,
                    description=moment.description,
                    type=kind.value,
                )
            )

    return VideoEntity(
        id=f"{VIDEO_ID_PREFIX}{record.id}",
        type=video_type_for(record.category),
        title=record.title,
        description=record.description,
        key_moments=moments,
        participants=list(record.participants),
    )


def videos_from_records(records: list[MeetingRecord]) -> list[VideoEntity]:
    """VideoEntities for the portfolio-relevant records only."""
    return [video_from_record(r) for r in records if r.is_portfolio_relevant]


__all__ = [
    "CATEGORY_VIDEO_TYPES",
    "video_from_record",
    "video_type_for",
    "videos_from_records",
]
