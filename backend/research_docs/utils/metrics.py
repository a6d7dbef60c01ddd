"""Prometheus metrics for document operations."""

from prometheus_client import Counter, Histogram

# Duplicate check metrics
duplicate_checks_total = Counter(
    "duplicate_checks_total",
    "Total duplicate checks by recommendation",
    ["recommendation"],
)

duplicate_check_latency_ms = Histogram(
    "duplicate_check_latency_ms",
    "Duplicate check latency in milliseconds",
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

# Replacement metrics
document_replacements_total = Counter(
    "document_replacements_total",
    "Total document replacements by outcome",
    ["outcome"],
)

# Store errors
document_store_errors_total = Counter(
    "document_store_errors_total",
    "Total document store failures",
    ["operation"],
)


class PrometheusDocumentMetrics:
    """Prometheus-based document metrics implementation."""

    def record_check(self, recommendation: str, latency_ms: float) -> None:
        """Record a duplicate check."""
        duplicate_checks_total.labels(recommendation=recommendation).inc()
        duplicate_check_latency_ms.observe(latency_ms)

    def inc_replacement(self, outcome: str) -> None:
        """Increment replacement outcome counter."""
        document_replacements_total.labels(outcome=outcome).inc()

    def inc_store_error(self, operation: str) -> None:
        """Increment store error counter."""
        document_store_errors_total.labels(operation=operation).inc()
