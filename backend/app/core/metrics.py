"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Claim metrics
claim_attempts = Counter(
    'seat_claim_attempts_total',
    'Total seat claim attempts',
    ['outcome']  # success, duplicate, unavailable, unknown_concert, theater_mismatch, busy, error
)

claim_latency = Histogram(
    'seat_claim_latency_seconds',
    'Seat claim transaction latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

seats_claimed = Counter(
    'seats_claimed_total',
    'Seats moved from available to occupied'
)

# Release metrics
release_attempts = Counter(
    'reservation_release_attempts_total',
    'Total reservation release attempts',
    ['outcome']  # released, noop, busy, error
)

seats_released = Counter(
    'seats_released_total',
    'Seats moved from occupied back to available'
)

# Token / discount metrics
tokens_issued = Counter(
    'entitlement_tokens_issued_total',
    'Entitlement tokens minted',
    ['has_reservation']  # true, false
)

discount_estimates = Counter(
    'discount_estimates_total',
    'Discount estimation requests',
    ['result']  # ok, invalid_token, malformed_payload
)

discount_value = Histogram(
    'discount_percentage',
    'Distribution of returned discount percentages',
    buckets=[5, 10, 15, 20, 25, 30, 35, 40, 45, 50]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

# Convenience functions for instrumentation
def record_claim(outcome: str, seat_count: int = 0):
    """Record claim outcome. Seats are only counted on success."""
    claim_attempts.labels(outcome=outcome).inc()
    if outcome == "success":
        seats_claimed.inc(seat_count)

def record_release(outcome: str, seat_count: int = 0):
    release_attempts.labels(outcome=outcome).inc()
    if outcome == "released":
        seats_released.inc(seat_count)

def record_token_issued(has_reservation: bool):
    tokens_issued.labels(has_reservation=str(has_reservation).lower()).inc()

def record_discount(result: str, value: int = None):
    """Record estimator outcome. Result: ok, invalid_token, malformed_payload"""
    discount_estimates.labels(result=result).inc()
    if value is not None:
        discount_value.observe(value)

def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
