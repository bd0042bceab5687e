"""Meeting intelligence and relevance scoring engine.

Groups stored meeting artifacts into meeting records, classifies transcripts
with deterministic rules, extracts key moments, merges manual relevance
overrides, and scores video-to-project link suggestions.
"""
