"""Prometheus metrics for monitoring and observability."""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    Info,
    generate_latest,
)
from starlette.responses import Response

from .settings import APP_VERSION, SERVICE_NAME

# ==============================================================================
# APPLICATION INFO
# ==============================================================================

app_info = Info("pix_gateway", "PIX gateway information")
app_info.info({"version": APP_VERSION, "service": SERVICE_NAME})

# ==============================================================================
# TOKEN CACHE / AUTHENTICATION METRICS
# ==============================================================================

token_cache_lookups_total = Counter(
    "instapay_token_cache_lookups_total",
    "Token cache lookups",
    ["result"],  # hit | miss
)

instapay_logins_total = Counter(
    "instapay_logins_total",
    "Login calls made to Instapay",
    ["result"],  # ok | rejected | invalid
)

# ==============================================================================
# DEPOSIT METRICS
# ==============================================================================

pix_deposits_total = Counter(
    "pix_deposits_total",
    "PIX deposit requests handled",
    ["outcome"],  # created | upstream_error | invalid_request | failed
)

instapay_request_duration_seconds = Histogram(
    "instapay_request_duration_seconds",
    "Instapay API call duration in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0),
)


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "get_metrics",
    "instapay_logins_total",
    "instapay_request_duration_seconds",
    "pix_deposits_total",
    "token_cache_lookups_total",
]
