from __future__ import annotations

import time
from collections.abc import Callable

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

UNMATCHED_PATH = "unmatched"

REQUEST_COUNTER = Counter(
    "microblog_request_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "microblog_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
)

# Domain events
POSTS_PUBLISHED = Counter("microblog_posts_published_total", "Posts published")
COMMENTS_MODERATED = Counter(
    "microblog_comments_moderated_total",
    "Comments moved out of the moderation queue",
    ["status"],
)
LIKE_TOGGLES = Counter(
    "microblog_like_toggles_total", "Like toggles", ["action"]
)
RATE_LIMITED = Counter(
    "microblog_rate_limited_total", "Requests denied by a quota", ["scope"]
)
NOTIFICATION_FAILURES = Counter(
    "microblog_notification_failures_total", "Notification deliveries that failed"
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        route = request.scope.get("route")
        path_template = getattr(route, "path", UNMATCHED_PATH)
        REQUEST_COUNTER.labels(
            request.method, path_template, response.status_code
        ).inc()
        REQUEST_LATENCY.labels(request.method, path_template).observe(duration)
        return response


def metrics_response() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
