"""
Prometheus metrics for the webhook gateway.

This module provides:
- HTTP request counter (method, path, status)
- Webhook outcome counter (endpoint, result)
- Downstream forwarding counter (sink, result)
- Request latency histogram (method, path)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# result: accepted, missing_signature, malformed_signature, invalid_signature,
#         invalid_json, config_error
webhook_requests_total = Counter(
    "webhook_requests_total",
    "Total webhook verification outcomes",
    labelnames=["endpoint", "result"]
)

# sink: splunk, sms; result: success, failure
forward_requests_total = Counter(
    "forward_requests_total",
    "Total downstream forwarding attempts",
    labelnames=["sink", "result"]
)

request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    normalized_path = path.split("?")[0]

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_webhook_outcome(endpoint: str, result: str) -> None:
    """Record the verification outcome of a webhook request."""
    webhook_requests_total.labels(endpoint=endpoint, result=result).inc()


def record_forward_outcome(sink: str, success: bool) -> None:
    """Record a downstream forwarding attempt."""
    forward_requests_total.labels(
        sink=sink,
        result="success" if success else "failure"
    ).inc()


def get_metrics() -> bytes:
    """Generate Prometheus exposition format metrics."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
