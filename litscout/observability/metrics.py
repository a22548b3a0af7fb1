"""Prometheus metrics definitions for the newsreader engine.

Defines counters and histograms for monitoring:
- Candidates fetched per source and rejected per admission gate
- Source call failures by reason
- Shortlist and dismissal operations by outcome
- Discovery request latency

Usage:
    from litscout.observability.metrics import CANDIDATES_FETCHED

    CANDIDATES_FETCHED.labels(source="crossref").inc(10)

    with DISCOVERY_DURATION.labels(mode="all").time():
        await service.list_candidates()

Metrics are exposed via the /metrics endpoint of the HTTP server.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Private registry so tests and embedded apps never collide with the default
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

CANDIDATES_FETCHED = Counter(
    name="litscout_candidates_fetched_total",
    documentation="Candidates returned by source adapters",
    labelnames=["source"],  # crossref, semantic_scholar, arxiv
    registry=REGISTRY,
)

CANDIDATES_REJECTED = Counter(
    name="litscout_candidates_rejected_total",
    documentation="Candidates rejected by the admission gate",
    labelnames=["reason"],  # invalid_title, existing_reference, dismissed, ...
    registry=REGISTRY,
)

SOURCE_FAILURES = Counter(
    name="litscout_source_failures_total",
    documentation="Source calls that contributed no candidates",
    labelnames=["source", "reason"],  # reason: timeout, rate_limited, ...
    registry=REGISTRY,
)

SHORTLIST_OPERATIONS = Counter(
    name="litscout_shortlist_operations_total",
    documentation="Shortlist mutations by outcome",
    labelnames=["operation", "outcome"],  # add/remove/cascade, added/skipped/...
    registry=REGISTRY,
)

DISMISSALS = Counter(
    name="litscout_dismissals_total",
    documentation="Dismissal operations",
    labelnames=["outcome"],  # created, updated
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

DISCOVERY_DURATION = Histogram(
    name="litscout_discovery_duration_seconds",
    documentation="Discovery request duration in seconds",
    labelnames=["mode"],  # all, new
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for the metrics response."""
    return CONTENT_TYPE_LATEST
