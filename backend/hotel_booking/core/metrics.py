"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'hotel_booking_attempts_total',
    'Booking allocation attempts',
    ['operation', 'outcome']  # create/update, success/not_found/unauthorized/ineligible_ticket/capacity_exceeded
)

booking_latency = Histogram(
    'hotel_booking_latency_seconds',
    'Booking allocation latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Cache metrics
cache_operations = Counter(
    'hotel_booking_cache_operations_total',
    'Booking cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(operation: str, outcome: str):
    """Record booking attempt. Outcome is 'success' or the error kind."""
    booking_attempts.labels(operation=operation, outcome=outcome).inc()


def record_cache_operation(operation: str, result: str):
    """Record cache operation."""
    cache_operations.labels(operation=operation, result=result).inc()
