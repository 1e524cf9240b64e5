"""Prometheus metrics for SignDesk."""

from prometheus_client import Counter, Gauge, Histogram

# Request metrics
request_latency_seconds = Histogram(
    "signdesk_request_latency_seconds",
    "Latency of HTTP requests in seconds",
    ["endpoint", "method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

request_total = Counter(
    "signdesk_request_total",
    "Total number of HTTP requests",
    ["endpoint", "method", "status"],
)

active_requests = Gauge(
    "signdesk_active_requests",
    "Number of active HTTP requests",
)

# Quota / mode admission metrics
live_admission_total = Counter(
    "signdesk_live_admission_total",
    "Admission decisions by action kind, mode and outcome",
    ["kind", "mode", "outcome"],
)

live_quota_consumed_total = Counter(
    "signdesk_live_quota_consumed_total",
    "LIVE quota units consumed",
    ["kind"],
)

ledger_inconsistency_total = Counter(
    "signdesk_ledger_inconsistency_total",
    "LIVE effects whose quota consumption could not be recorded",
    ["kind"],
)


def track_request_start() -> None:
    """Increment the active requests counter."""
    active_requests.inc()


def track_request_end(endpoint: str, method: str, status: int, duration: float) -> None:
    """Record a finished HTTP request."""
    active_requests.dec()
    request_total.labels(endpoint=endpoint, method=method, status=str(status)).inc()
    request_latency_seconds.labels(endpoint=endpoint, method=method).observe(duration)


def track_admission(kind: str, mode: str, outcome: str) -> None:
    """Record an admission decision.

    Args:
        kind: Action kind (e.g. 'sign', 'upload')
        mode: 'preview' or 'live'
        outcome: 'allowed', 'tier_ineligible' or 'quota_exhausted'
    """
    live_admission_total.labels(kind=kind, mode=mode, outcome=outcome).inc()


def track_quota_consumed(kind: str) -> None:
    """Record one unit of LIVE quota consumed."""
    live_quota_consumed_total.labels(kind=kind).inc()


def track_ledger_inconsistency(kind: str) -> None:
    """Record a LIVE effect that was not charged."""
    ledger_inconsistency_total.labels(kind=kind).inc()
