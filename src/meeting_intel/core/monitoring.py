"""Prometheus metrics for the meeting pipeline.

Counters are module-level singletons registered on the default registry,
so any host that exposes ``prometheus_client`` metrics picks them up.
"""

from __future__ import annotations

from prometheus_client import Counter

# ── Ingestion Metrics ────────────────────────────────────────────────────────

artifacts_listed_total = Counter(
    "meeting_artifacts_listed_total",
    "Meeting artifacts recognised while listing the blob store",
    ["artifact_type"],
)

artifact_failures_total = Counter(
    "meeting_artifact_failures_total",
    "Per-item failures absorbed by batch operations",
    ["stage"],
)

# ── Analysis Metrics ─────────────────────────────────────────────────────────

classifications_total = Counter(
    "transcript_classifications_total",
    "Transcript classifications by resulting category",
    ["category"],
)

analysis_cache_lookups_total = Counter(
    "analysis_cache_lookups_total",
    "Analysis cache lookups by outcome",
    ["result"],
)

display_cache_recomputes_total = Counter(
    "display_cache_recomputes_total",
    "Recomputations of the display-ready meeting list",
)
