"""Structured logging and Prometheus metrics."""

from __future__ import annotations

from microblog.observability.logging import configure_logging
from microblog.observability.metrics import MetricsMiddleware, metrics_response

__all__ = [
    "MetricsMiddleware",
    "configure_logging",
    "metrics_response",
]
