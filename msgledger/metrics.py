"""
Prometheus metrics for the ledger service.

Tracks:
- HTTP requests by method, path and status
- Ledger command outcomes by command and result
- Request latency by method and path

Metrics live in the default prometheus-client registry.
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

# result: ok, validation_error, not_found, conflict, unauthorized, host_error
ledger_invocations_total = Counter(
    "ledger_invocations_total",
    "Total ledger command outcomes",
    labelnames=["command", "result"]
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
    Count one HTTP request and observe its latency.

    Args:
        method: HTTP method
        path: Route template the request matched
        status: Response status code
        latency_seconds: Time spent handling the request
    """
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    request_latency_seconds.labels(method=method, path=path).observe(latency_seconds)


def record_invocation(command: str, result: str) -> None:
    """Count one ledger command outcome."""
    ledger_invocations_total.labels(command=command, result=result).inc()


def get_metrics() -> bytes:
    """Render all metrics in the Prometheus text format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
