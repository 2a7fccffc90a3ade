"""Security façade for rate limiting and per-user quotas."""

# Re-export limiter and quotas
from .rate_limit import (  # noqa: F401
    QuotaDecision,
    QuotaLimiter,
    comment_quota,
    like_quota,
    limiter,
    post_quota,
)

__all__ = [
    "QuotaDecision",
    "QuotaLimiter",
    "comment_quota",
    "like_quota",
    "limiter",
    "post_quota",
]
