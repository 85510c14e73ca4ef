"""
Prometheus metrics collection module.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration of HTTP requests
- AI Metrics: provider calls, attempts, retries, credential failovers,
  invalid responses
- Business Metrics: floor-plan fallbacks, KPR simulations
- Resource Metrics: CPU, memory

Naming follows Prometheus conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for durations
- Gauges: No special suffix
"""
import psutil
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    REGISTRY,
    CONTENT_TYPE_LATEST,
)

from app.core.logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# RED METRICS - Rate, Errors, Duration
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_errors_total = Counter(
    "http_errors_total",
    "Total number of HTTP errors",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry,
)

# ============================================================================
# AI METRICS
# ============================================================================

llm_requests_total = Counter(
    "llm_requests_total",
    "Total number of calls to the generative-text provider",
    ["agent", "model"],
    registry=registry,
)

llm_request_duration_seconds = Histogram(
    "llm_request_duration_seconds",
    "Generative-text provider call latency in seconds",
    ["agent", "model"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
    registry=registry,
)

llm_errors_total = Counter(
    "llm_errors_total",
    "Total number of provider call errors",
    ["agent", "error_type"],
    registry=registry,
)

llm_attempts_total = Counter(
    "llm_attempts_total",
    "Orchestrated provider attempts by credential and outcome",
    ["agent", "credential", "outcome"],
    registry=registry,
)

llm_credential_failovers_total = Counter(
    "llm_credential_failovers_total",
    "Switches from the primary to the fallback credential",
    ["agent"],
    registry=registry,
)

llm_retry_delay_seconds = Histogram(
    "llm_retry_delay_seconds",
    "Backoff delay inserted before a retried provider attempt",
    ["agent"],
    buckets=[0.1, 0.5, 1.0, 2.0, 4.0, 8.0, 16.0, 32.0],
    registry=registry,
)

llm_invalid_responses_total = Counter(
    "llm_invalid_responses_total",
    "Provider outputs that failed JSON parsing or shape validation",
    ["agent"],
    registry=registry,
)

# ============================================================================
# BUSINESS METRICS
# ============================================================================

floorplan_fallbacks_total = Counter(
    "floorplan_fallbacks_total",
    "Floor plans served from deterministic mock data after an AI failure",
    registry=registry,
)

kpr_simulations_total = Counter(
    "kpr_simulations_total",
    "Total number of mortgage (KPR) simulations",
    ["bank"],
    registry=registry,
)

# ============================================================================
# RESOURCE METRICS
# ============================================================================

system_cpu_usage_percent = Gauge(
    "system_cpu_usage_percent",
    "System CPU usage percentage",
    registry=registry,
)

system_memory_usage_bytes = Gauge(
    "system_memory_usage_bytes",
    "System memory usage in bytes",
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def normalize_endpoint(path: str) -> str:
    """Endpoint label for metrics: the path without its query string."""
    return path.split("?", 1)[0]


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record HTTP request metrics (RED metrics)."""
    normalized_endpoint = normalize_endpoint(endpoint)

    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()

    if status_code >= 400:
        http_errors_total.labels(
            method=method,
            endpoint=normalized_endpoint,
            status_code=str(status_code),
        ).inc()

    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def record_llm_request(agent: str, model: str, duration_ms: float) -> None:
    """Record one provider call and its latency (successful or not)."""
    llm_requests_total.labels(agent=agent, model=model).inc()
    llm_request_duration_seconds.labels(agent=agent, model=model).observe(duration_ms / 1000.0)


def record_llm_error(agent: str, error_type: str) -> None:
    llm_errors_total.labels(agent=agent, error_type=error_type).inc()


def record_llm_attempt(agent: str, credential: str, outcome: str) -> None:
    """
    Record an orchestrated attempt.

    Args:
        agent: Calling agent ("chat", "floorplan", ...)
        credential: Credential name ("primary" / "fallback")
        outcome: "success" or an ErrorClass value
    """
    llm_attempts_total.labels(agent=agent, credential=credential, outcome=outcome).inc()


def record_llm_failover(agent: str) -> None:
    llm_credential_failovers_total.labels(agent=agent).inc()


def record_llm_retry_delay(agent: str, delay_seconds: float) -> None:
    llm_retry_delay_seconds.labels(agent=agent).observe(delay_seconds)


def record_llm_invalid_response(agent: str) -> None:
    llm_invalid_responses_total.labels(agent=agent).inc()


def record_floorplan_fallback() -> None:
    floorplan_fallbacks_total.inc()


def record_kpr_simulation(bank: str) -> None:
    kpr_simulations_total.labels(bank=bank).inc()


def update_resource_metrics() -> None:
    """Refresh CPU and memory gauges; called when metrics are scraped."""
    try:
        system_cpu_usage_percent.set(psutil.cpu_percent(interval=0.1))
        system_memory_usage_bytes.set(psutil.virtual_memory().used)
    except Exception as e:
        logger.warning(
            "metrics_resource_update_failed",
            error=str(e),
            error_type=type(e).__name__,
        )


def get_metrics() -> bytes:
    """Prometheus text exposition of the registry."""
    update_resource_metrics()
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
