"""TranscriptAnalyzer -- full rule-based insight extraction for one transcript.

Runs the classifier first. Skipped transcripts get empty insights; relevant
ones additionally get key moments, participants, technical topics,
decisions, an estimated duration, and a generated title and description.
"""

from __future__ import annotations

import math
import re

import structlog

from src.meeting_intel.analysis.classifier import TranscriptClassifier, clean_transcript
from src.meeting_intel.analysis.key_moments import KeyMomentExtractor
from src.meeting_intel.meetings.schemas import MeetingCategory, MeetingInsights

logger = structlog.get_logger(__name__)

WORDS_PER_MINUTE = 150
MAX_PARTICIPANTS = 10
MAX_TOPICS = 10
MAX_DECISIONS = 5

CATEGORY_TITLES: dict[MeetingCategory, str] = {
    MeetingCategory.ARCHITECTURE_REVIEW: "Architecture Review Session",
    MeetingCategory.TECHNICAL_DISCUSSION: "Technical Discussion",
    MeetingCategory.MENTORING_SESSION: "Mentoring & Coaching Session",
    MeetingCategory.CODE_REVIEW: "Code Review Session",
    MeetingCategory.LEADERSHIP_MOMENT: "Leadership & Strategy Session",
}

CATEGORY_DESCRIPTIONS: dict[MeetingCategory, str] = {
    MeetingCategory.ARCHITECTURE_REVIEW: (
        "Deep dive into system architecture, design patterns, and technical decisions."
    ),
    MeetingCategory.TECHNICAL_DISCUSSION: (
        "Technical conversation covering implementation details and problem-solving."
    ),
    MeetingCategory.MENTORING_SESSION: (
        "Coaching session focused on professional development and technical guidance."
    ),
    MeetingCategory.CODE_REVIEW: (
        "Code review session with feedback on implementation and best practices."
    ),
    MeetingCategory.LEADERSHIP_MOMENT: (
        "Leadership discussion covering strategy, team dynamics, and decision-making."
    ),
}

TECH_TOPICS: tuple[str, ...] = (
    "React", "Node.js", "TypeScript", "JavaScript", "Python", "AWS", "Docker",
    "Kubernetes", "PostgreSQL", "MongoDB", "Redis", "GraphQL", "REST API",
    "Microservices", "Architecture", "Design Patterns", "Database", "Frontend",
    "Backend", "DevOps", "CI/CD", "Testing", "Security", "Performance",
    "Scalability", "Optimization", "Machine Learning", "AI", "Algorithms",
)

_TOPIC_PATTERNS = tuple(
    (topic, re.compile(rf"\b{re.escape(topic)}\b", re.IGNORECASE))
    for topic in TECH_TOPICS
)

_SPEAKER_PATTERNS = (
    re.compile(r"^([A-Z][a-zA-Z \t]{1,20}):", re.MULTILINE),
    re.compile(r"\b([A-Z][a-z]+)\s+(?:said|says|mentioned|asked|replied)"),
    re.compile(r"\b(?:Hi|Hello)\s+([A-Z][a-z]+)"),
)

_DECISION_PATTERNS = (
    re.compile(
        r"(?:decided|agreed|concluded|chose|selected)\s+(?:to|that|on)\s+([^.!?]{10,100})",
        re.IGNORECASE,
    ),
    re.compile(r"(?:we will|we'll|going to|plan to)\s+([^.!?]{10,100})", re.IGNORECASE),
    re.compile(
        r"(?:solution|approach|strategy)\s+(?:is|will be)\s+([^.!?]{10,100})",
        re.IGNORECASE,
    ),
)

_LINE_METADATA_RE = re.compile(r"\[[^\]\n]*\]")


# ── Extraction Helpers ───────────────────────────────────────────────────────


def extract_participants(raw_text: str) -> list[str]:
    """Speaker names from ``Name:`` labels, ``Name said``, and ``Hi Name``.

    Works on the raw text so line starts survive; names must be a single
    word of 2-19 characters.
    """
    lines = (_LINE_METADATA_RE.sub("", line).strip() for line in raw_text.splitlines())
    text = "\n".join(lines)

    participants: list[str] = []
    for pattern in _SPEAKER_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if 1 < len(name) < 20 and " " not in name and name not in participants:
                participants.append(name)
    return participants[:MAX_PARTICIPANTS]


def extract_technical_topics(text: str) -> list[str]:
    topics = [topic for topic, pattern in _TOPIC_PATTERNS if pattern.search(text)]
    return topics[:MAX_TOPICS]


def extract_decisions(text: str) -> list[str]:
    decisions: list[str] = []
    for pattern in _DECISION_PATTERNS:
        for match in pattern.finditer(text):
            decision = match.group(1).strip()
            if len(decision) > 10:
                decisions.append(decision)
    return decisions[:MAX_DECISIONS]


def estimate_duration(text: str) -> str:
    """Spoken length at 150 wpm, as ``M:00`` or ``H:MM:00``."""
    word_count = len(text.split()) if text else 0
    minutes = math.floor(word_count / WORDS_PER_MINUTE + 0.5)
    if minutes < 60:
        return f"{minutes}:00"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes:02d}:00"


def generate_title(category: MeetingCategory, topics: list[str]) -> str:
    base = CATEGORY_TITLES.get(category, "Technical Session")
    if topics:
        return f"{base}: {' & '.join(topics[:2])}"
    return base


# ── Analyzer ─────────────────────────────────────────────────────────────────


class TranscriptAnalyzer:
    """Combines the classifier and key-moment extractor into MeetingInsights.

    Args:
        classifier: TranscriptClassifier to use. A default one is built if None.
        extractor: KeyMomentExtractor to use. A default one is built if None.
    """

    def __init__(
        self,
        classifier: TranscriptClassifier | None = None,
        extractor: KeyMomentExtractor | None = None,
    ) -> None:
        self.classifier = classifier or TranscriptClassifier()
        self.extractor = extractor or KeyMomentExtractor()

    def analyze(self, text: str, filename: str | None = None) -> MeetingInsights:
        """Analyze a transcript. Never raises for ordinary text input."""
        raw_text = text or ""
        cleaned = clean_transcript(raw_text)
        classification = self.classifier.classify(raw_text, filename)
        participants = extract_participants(raw_text)
        duration = estimate_duration(cleaned)

        if not classification.is_relevant:
            return MeetingInsights(
                classification=classification,
                participants=participants,
                duration=duration,
                title=filename or "Unknown Meeting",
                is_portfolio_relevant=False,
            )

        topics = extract_technical_topics(cleaned)
        insights = MeetingInsights(
            classification=classification,
            key_moments=self.extractor.extract(cleaned),
            participants=participants,
            technical_topics=topics,
            decisions=extract_decisions(cleaned),
            duration=duration,
            title=generate_title(classification.category, topics),
            description=CATEGORY_DESCRIPTIONS.get(classification.category, ""),
            is_portfolio_relevant=True,
        )
        logger.info(
            "analysis.transcript_analyzed",
            filename=filename,
            category=classification.category.value,
            key_moments=len(insights.key_moments),
            topics=len(topics),
        )
        return insights


__all__ = [
    "CATEGORY_DESCRIPTIONS",
    "CATEGORY_TITLES",
    "TECH_TOPICS",
    "TranscriptAnalyzer",
    "estimate_duration",
    "extract_decisions",
    "extract_participants",
    "extract_technical_topics",
    "generate_title",
]
