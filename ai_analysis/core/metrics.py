"""Prometheus metrics for the analysis pipeline."""

from prometheus_client import Counter, Histogram, Info, generate_latest

# --- Metrics ---

APP_INFO = Info("ai_analysis", "AI analysis pipeline info")
APP_INFO.info({"version": "1.0.0", "name": "ai_analysis"})

PROVIDER_CALLS = Counter(
    "ai_provider_calls_total",
    "Provider call attempts by outcome",
    ["outcome"],
)

PROVIDER_RETRIES = Counter(
    "ai_provider_retries_total",
    "Provider retries scheduled after a transient failure",
    ["kind"],
)

PROVIDER_LATENCY = Histogram(
    "ai_provider_latency_seconds",
    "Provider call latency in seconds (single attempt)",
    buckets=[0.5, 1, 2.5, 5, 10, 20, 30, 45, 60],
)

RATE_LIMITED = Counter(
    "ai_rate_limited_total",
    "Requests rejected by the per-caller rate limiter",
    ["result_type"],
)

CACHE_LOOKUPS = Counter(
    "ai_result_cache_lookups_total",
    "Result cache lookups",
    ["result_type", "outcome"],  # hit | miss | expired | stale | error
)

ANALYSIS_FAILURES = Counter(
    "ai_analysis_failures_total",
    "Failed analyses by result type and error class",
    ["result_type", "error"],
)


def metrics_payload() -> bytes:
    """Render all metrics in the Prometheus text exposition format."""
    return generate_latest()
