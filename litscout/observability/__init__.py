"""Observability: correlation IDs, structured logging and Prometheus metrics.

Usage:
    from litscout.observability import (
        configure_logging,
        correlation_id_context,
        CANDIDATES_FETCHED,
    )

    configure_logging(level="INFO")

    with correlation_id_context():
        CANDIDATES_FETCHED.labels(source="crossref").inc()
"""

from litscout.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    correlation_id_context,
)
from litscout.observability.logging import (
    get_logger,
    configure_logging,
    add_correlation_id_processor,
)
from litscout.observability.metrics import (
    CANDIDATES_FETCHED,
    CANDIDATES_REJECTED,
    SOURCE_FAILURES,
    SHORTLIST_OPERATIONS,
    DISMISSALS,
    DISCOVERY_DURATION,
    get_metrics_text,
    get_metrics_content_type,
)

__all__ = [
    # Context
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Logging
    "get_logger",
    "configure_logging",
    "add_correlation_id_processor",
    # Metrics
    "CANDIDATES_FETCHED",
    "CANDIDATES_REJECTED",
    "SOURCE_FAILURES",
    "SHORTLIST_OPERATIONS",
    "DISMISSALS",
    "DISCOVERY_DURATION",
    "get_metrics_text",
    "get_metrics_content_type",
]
