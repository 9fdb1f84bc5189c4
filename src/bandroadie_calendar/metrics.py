"""
Prometheus metrics for calendar operations.

Metrics live on a private registry so embedding applications can expose or
ignore them without clashing with their own default registry.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "bandroadie_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "bandroadie_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "bandroadie_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

month_cache_requests_total = Counter(
    "bandroadie_month_cache_requests_total",
    "Month cache lookups by result",
    ["result"],  # hit | miss | stale
    registry=REGISTRY,
)


def record_service_operation(
    service: str,
    operation: str,
    duration: float,
    status: str = "success",
    error_type: Optional[str] = None,
) -> None:
    """Record one measured operation."""
    service_operation_duration_seconds.labels(service=service, operation=operation).observe(
        duration
    )
    service_operations_total.labels(service=service, operation=operation, status=status).inc()
    if status == "error" and error_type:
        errors_total.labels(service=service, operation=operation, error_type=error_type).inc()


def record_cache_lookup(result: str) -> None:
    month_cache_requests_total.labels(result=result).inc()


def export() -> bytes:
    """Metrics in Prometheus text exposition format."""
    return generate_latest(REGISTRY)
