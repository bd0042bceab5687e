"""Transcript analysis module -- rule-based classification and caching.

Deterministic classifier and key-moment extractor, the TranscriptAnalyzer
that combines them, and the override-aware cache layer that persists
results per meeting.
"""
