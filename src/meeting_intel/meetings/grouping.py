"""Artifact grouping -- derive meeting records from blob-store filenames.

Recordings, transcripts, and summaries of the same meeting share a filename
stem (``kickoff_2024-03-01.mp4``, ``kickoff_2024-03-01_transcript.txt``).
The grouper derives a stable key, title, and date from that stem and merges
artifacts sharing a key into exactly one MeetingRecord.

All functions here are pure; the clock used for undated filenames is
injectable.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

import structlog

from src.meeting_intel.meetings.schemas import (
    ArtifactType,
    MeetingRecord,
    RawArtifact,
)

logger = structlog.get_logger(__name__)

UNTITLED_MEETING = "Untitled Meeting"

_EXTENSION_RE = re.compile(r"\.(mp4|txt)$", re.IGNORECASE)
_SUFFIX_RE = re.compile(r"[_\-\s]?(transcript|recap|summary|video)$", re.IGNORECASE)
_UNSAFE_KEY_CHARS_RE = re.compile(r"[^A-Za-z0-9_\-]")
_SEPARATOR_RE = re.compile(r"[_\-]")
_WORD_START_RE = re.compile(r"\b\w")
_DATE_RE = re.compile(r"(\d{4}[-_]\d{2}[-_]\d{2})")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Filename Helpers ─────────────────────────────────────────────────────────


def detect_artifact_type(filename: str) -> ArtifactType | None:
    """Classify a filename as video, transcript, or summary.

    ``.mp4`` is always a video. A ``.txt`` naming a transcript wins over one
    naming a recap/summary; any other ``.txt`` defaults to transcript.
    Other extensions are not meeting artifacts.
    """
    lowered = filename.lower()
    extension = lowered.rsplit(".", 1)[-1] if "." in lowered else ""

    if extension == "mp4":
        return ArtifactType.VIDEO
    if extension == "txt":
        if "transcript" in lowered:
            return ArtifactType.TRANSCRIPT
        if "recap" in lowered or "summary" in lowered:
            return ArtifactType.SUMMARY
        return ArtifactType.TRANSCRIPT
    return None


def _base_name(filename: str) -> str:
    stem = _EXTENSION_RE.sub("", filename)
    return _SUFFIX_RE.sub("", stem)


def meeting_key(filename: str) -> str:
    """Derive the group key shared by all artifacts of one meeting."""
    return _UNSAFE_KEY_CHARS_RE.sub("_", _base_name(filename))


def meeting_title(filename: str) -> str:
    """Human-readable title: separators become spaces, words are capitalised."""
    spaced = _SEPARATOR_RE.sub(" ", _base_name(filename))
    title = _WORD_START_RE.sub(lambda m: m.group(0).upper(), spaced)
    return title or UNTITLED_MEETING


def meeting_date(
    filename: str, clock: Callable[[], datetime] = _utcnow
) -> str:
    """First ``YYYY[-_]MM[-_]DD`` in the filename, else today's date."""
    match = _DATE_RE.search(filename)
    if match:
        return match.group(1).replace("_", "-")
    return clock().date().isoformat()


def filename_from_key(key: str) -> str:
    """Last path segment of a blob key."""
    return key.rsplit("/", 1)[-1]


# ── Grouper ──────────────────────────────────────────────────────────────────


class ArtifactGrouper:
    """Merges artifacts into MeetingRecords keyed by their derived meeting key.

    The first artifact of a group sets the record's title and date. A later
    artifact of the same type replaces the earlier one.

    Args:
        clock: Callable returning "now", used for undated filenames.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def group(self, artifacts: Iterable[RawArtifact]) -> dict[str, MeetingRecord]:
        """Group artifacts by meeting key, preserving first-seen order."""
        records: dict[str, MeetingRecord] = {}

        for artifact in artifacts:
            key = meeting_key(artifact.filename)
            record = records.get(key)
            if record is None:
                record = MeetingRecord(
                    id=key,
                    title=meeting_title(artifact.filename),
                    date_recorded=meeting_date(artifact.filename, self._clock),
                )
                records[key] = record

            slot = artifact.type.value
            previous = getattr(record, slot)
            if previous is not None:
                logger.debug(
                    "meetings.artifact_slot_overwritten",
                    meeting_id=key,
                    slot=slot,
                    previous_key=previous.key,
                    new_key=artifact.key,
                )
            setattr(record, slot, artifact)

        return records


__all__ = [
    "ArtifactGrouper",
    "UNTITLED_MEETING",
    "detect_artifact_type",
    "filename_from_key",
    "meeting_date",
    "meeting_key",
    "meeting_title",
]
