"""Declarative rule tables for transcript classification.

Patterns are matched against lowercased text. Category rules are evaluated
in table order, which is also the tie-break order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.meeting_intel.meetings.schemas import KeyMomentType, MeetingCategory


@dataclass(frozen=True)
class CategoryRule:
    """Patterns that count as evidence for one category."""

    category: MeetingCategory
    patterns: tuple[re.Pattern[str], ...]
    weight: float = 1.0

    def score(self, text: str) -> float:
        """Weighted count of every pattern occurrence in ``text``."""
        hits = sum(len(pattern.findall(text)) for pattern in self.patterns)
        return self.weight * hits


def _compile(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source) for source in sources)


# ── Skip Gate ────────────────────────────────────────────────────────────────

SKIP_PATTERNS: tuple[re.Pattern[str], ...] = _compile(
    r"\b(alignment|standup|stand-up|daily|scrum|administrative|admin|hr|human resources)\b",
    r"\b(budget|financial|planning|schedule|calendar|meeting schedule)\b",
    r"\b(status update|progress report|weekly update|check-in)\b",
    r"\b(birthday|celebration|social|lunch|coffee)\b",
)

# ── Category Rules ───────────────────────────────────────────────────────────

CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        MeetingCategory.ARCHITECTURE_REVIEW,
        _compile(
            r"\b(architecture|architectural|system design|design pattern|modular|scalability)\b",
            r"\b(microservices|api design|database design|infrastructure)\b",
            r"\b(technical debt|refactor|performance|optimization)\b",
            r"\b(design decision|architectural decision|system architecture)\b",
        ),
    ),
    CategoryRule(
        MeetingCategory.TECHNICAL_DISCUSSION,
        _compile(
            r"\b(implementation|coding|development|algorithm|data structure)\b",
            r"\b(bug|debugging|troubleshooting|testing|deployment)\b",
            r"\b(framework|library|tool|technology|technical approach)\b",
            r"\b(security|authentication|authorization|encryption)\b",
        ),
    ),
    CategoryRule(
        MeetingCategory.MENTORING_SESSION,
        _compile(
            r"\b(mentoring|coaching|learning|teaching|guidance|career)\b",
            r"\b(code review|best practices|clean code|patterns)\b",
            r"\b(skill development|growth|feedback|improvement)\b",
            r"\b(junior|senior|developer growth|technical skills)\b",
        ),
    ),
    CategoryRule(
        MeetingCategory.LEADERSHIP_MOMENT,
        _compile(
            r"\b(leadership|team building|strategy|vision|direction)\b",
            r"\b(decision making|problem solving|conflict resolution)\b",
            r"\b(team dynamics|collaboration|communication|process)\b",
            r"\b(project management|resource allocation|planning)\b",
        ),
    ),
    CategoryRule(
        MeetingCategory.CODE_REVIEW,
        _compile(
            r"\b(code review|pull request|pr review|merge request)\b",
            r"\b(commit|branch|repository|git|version control)\b",
            r"\b(refactoring|clean up|optimization|readability)\b",
        ),
    ),
)

# ── Key-Moment Vocabulary ────────────────────────────────────────────────────

KEY_MOMENT_GROUPS: tuple[tuple[KeyMomentType, re.Pattern[str]], ...] = (
    (KeyMomentType.ARCHITECTURE, re.compile(r"\b(design|architecture|system|pattern|modular|scalable)\b", re.IGNORECASE)),
    (KeyMomentType.DECISION, re.compile(r"\b(decide|decision|choose|selected|agreed|conclusion)\b", re.IGNORECASE)),
    (KeyMomentType.TECHNICAL, re.compile(r"\b(implement|code|algorithm|performance|optimization|bug)\b", re.IGNORECASE)),
    (KeyMomentType.LEADERSHIP, re.compile(r"\b(team|lead|manage|strategy|vision|direction)\b", re.IGNORECASE)),
    (KeyMomentType.MENTORING, re.compile(r"\b(learn|teach|guidance|mentor|coaching|growth)\b", re.IGNORECASE)),
)

HIGH_VALUE_WORDS: tuple[str, ...] = (
    "architecture",
    "design",
    "decision",
    "implement",
    "solution",
    "strategy",
    "approach",
    "pattern",
    "optimization",
    "scalability",
    "leadership",
    "mentoring",
    "guidance",
    "learning",
    "growth",
)

CAUSAL_CONNECTIVE = re.compile(r"\b(because|since|due to|reason)\b", re.IGNORECASE)


__all__ = [
    "CATEGORY_RULES",
    "CAUSAL_CONNECTIVE",
    "CategoryRule",
    "HIGH_VALUE_WORDS",
    "KEY_MOMENT_GROUPS",
    "SKIP_PATTERNS",
]
