"""Rule-based transcript classifier.

Classification is a pure function of (text, filename) and runs in stages:

0. Length gate: fewer than 50 characters of cleaned text is a skip.
1. Skip gate: administrative or social vocabulary in the text or filename
   is an authoritative skip, regardless of technical content.
2. Category scoring: each CategoryRule counts pattern occurrences; the
   highest weighted score wins, ties going to the earlier rule.
3. Confidence floor: min(0.9, score / 10) below 0.3 is vetoed to skip.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from src.meeting_intel.analysis.rules import (
    CATEGORY_RULES,
    SKIP_PATTERNS,
    CategoryRule,
)
from src.meeting_intel.core.monitoring import classifications_total
from src.meeting_intel.meetings.schemas import ClassificationResult, MeetingCategory

logger = structlog.get_logger(__name__)

MIN_CONTENT_CHARS = 50
MAX_CONFIDENCE = 0.9
CONFIDENCE_FLOOR = 0.3
SKIP_GATE_CONFIDENCE = 0.8
NO_INDICATOR_CONFIDENCE = 0.5

_METADATA_RE = re.compile(r"\[.*?\]")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_transcript(text: str) -> str:
    """Drop ``[...]`` timestamps/metadata and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _METADATA_RE.sub("", text)).strip()


class TranscriptClassifier:
    """Assigns a MeetingCategory (or SKIP) to transcript text.

    Args:
        rules: Category rules in tie-break order. Defaults to CATEGORY_RULES.
        skip_patterns: Patterns that force a skip. Defaults to SKIP_PATTERNS.
    """

    def __init__(
        self,
        rules: Sequence[CategoryRule] = CATEGORY_RULES,
        skip_patterns: Sequence[re.Pattern[str]] = SKIP_PATTERNS,
    ) -> None:
        self._rules = tuple(rules)
        self._skip_patterns = tuple(skip_patterns)

    def classify(self, text: str, filename: str | None = None) -> ClassificationResult:
        """Classify transcript text, using the filename as extra skip evidence."""
        result = self._classify(clean_transcript(text or ""), filename or "")
        classifications_total.labels(category=result.category.value).inc()
        logger.debug(
            "classifier.classified",
            filename=filename,
            category=result.category.value,
            confidence=result.confidence,
        )
        return result

    def _classify(self, cleaned: str, filename: str) -> ClassificationResult:
        if len(cleaned) < MIN_CONTENT_CHARS:
            return ClassificationResult(
                category=MeetingCategory.SKIP,
                confidence=0.0,
                reason=f"too short: {len(cleaned)} characters of content",
            )

        lowered = cleaned.lower()
        lowered_filename = filename.lower()
        if self._is_skip(lowered, lowered_filename):
            return ClassificationResult(
                category=MeetingCategory.SKIP,
                confidence=SKIP_GATE_CONFIDENCE,
                reason="administrative/non-technical meeting",
            )

        best_rule: CategoryRule | None = None
        best_score = 0.0
        for rule in self._rules:
            score = rule.score(lowered)
            if score > best_score:
                best_rule, best_score = rule, score

        if best_rule is None:
            return ClassificationResult(
                category=MeetingCategory.SKIP,
                confidence=NO_INDICATOR_CONFIDENCE,
                reason="no relevant indicators",
            )

        confidence = min(MAX_CONFIDENCE, best_score / 10)
        label = best_rule.category.value.replace("-", " ")
        if confidence < CONFIDENCE_FLOOR:
            return ClassificationResult(
                category=MeetingCategory.SKIP,
                confidence=confidence,
                reason=f"low confidence ({confidence:.2f}) for {label}",
            )

        return ClassificationResult(
            category=best_rule.category,
            confidence=confidence,
            reason=f"Detected {best_score:g} relevant indicators for {label}",
        )

    def _is_skip(self, text: str, filename: str) -> bool:
        return any(
            pattern.search(text) or pattern.search(filename)
            for pattern in self._skip_patterns
        )


__all__ = ["TranscriptClassifier", "clean_transcript"]
