"""Key-moment extraction from cleaned transcript text.

Each sentence is tested against five topic groups; every matching group
yields a candidate moment whose importance grows with high-value vocabulary,
questions, and causal reasoning. Timestamps are synthesized from sentence
position over an assumed meeting length, not measured from media.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from src.meeting_intel.analysis.rules import (
    CAUSAL_CONNECTIVE,
    HIGH_VALUE_WORDS,
    KEY_MOMENT_GROUPS,
)
from src.meeting_intel.meetings.schemas import KeyMoment, KeyMomentType

ASSUMED_DURATION_MINUTES = 45
MIN_SENTENCE_CHARS = 20
BASE_IMPORTANCE = 5
MIN_IMPORTANCE = 6
MAX_IMPORTANCE = 10
MAX_MOMENTS = 8
DESCRIPTION_CHARS = 100

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")


def split_sentences(text: str) -> list[str]:
    """Split on terminal punctuation, keeping it on the sentence."""
    sentences = (match.group(0).strip() for match in _SENTENCE_RE.finditer(text))
    return [s for s in sentences if len(s) > MIN_SENTENCE_CHARS]


def synthesize_timestamp(index: int, total: int) -> str:
    """Position ``index/total`` of the assumed meeting length, as ``mm:ss``."""
    if total <= 0:
        return "00:00"
    elapsed_minutes = index * ASSUMED_DURATION_MINUTES / total
    minutes = math.floor(elapsed_minutes)
    seconds = math.floor((elapsed_minutes * 60) % 60)
    return f"{minutes:02d}:{seconds:02d}"


def importance_of(sentence: str) -> int:
    lowered = sentence.lower()
    score = BASE_IMPORTANCE
    score += sum(1 for word in HIGH_VALUE_WORDS if word in lowered)
    if "?" in sentence:
        score += 1
    if CAUSAL_CONNECTIVE.search(sentence):
        score += 1
    return min(MAX_IMPORTANCE, score)


def _describe(sentence: str) -> str:
    if len(sentence) > DESCRIPTION_CHARS:
        return sentence[:DESCRIPTION_CHARS] + "..."
    return sentence


class KeyMomentExtractor:
    """Picks the most important topical sentences of a transcript.

    Args:
        groups: (type, pattern) pairs tested per sentence, in emission order.
        max_moments: How many moments to keep after ranking.
    """

    def __init__(
        self,
        groups: Sequence[tuple[KeyMomentType, re.Pattern[str]]] = KEY_MOMENT_GROUPS,
        max_moments: int = MAX_MOMENTS,
    ) -> None:
        self._groups = tuple(groups)
        self._max_moments = max_moments

    def extract(self, text: str) -> list[KeyMoment]:
        sentences = split_sentences(text)
        total = len(sentences)
        moments: list[KeyMoment] = []

        for index, sentence in enumerate(sentences):
            matched = [kind for kind, pattern in self._groups if pattern.search(sentence)]
            if not matched:
                continue
            importance = importance_of(sentence)
            if importance < MIN_IMPORTANCE:
                continue
            timestamp = synthesize_timestamp(index, total)
            description = _describe(sentence)
            for kind in matched:
                moments.append(
                    KeyMoment(
                        timestamp=timestamp,
                        description=description,
                        type=kind,
                        importance=importance,
                    )
                )

        # sorted() is stable, so equal importance keeps sentence order
        moments = sorted(moments, key=lambda m: m.importance, reverse=True)
        return moments[: self._max_moments]


__all__ = [
    "KeyMomentExtractor",
    "importance_of",
    "split_sentences",
    "synthesize_timestamp",
]
