"""Rate limiting: per-IP route throttling and per-user creation quotas."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass

from limits import parse
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from microblog.config import settings
from microblog.errors import RateLimitError
from microblog.observability.metrics import RATE_LIMITED

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


@dataclass(frozen=True, slots=True)
class QuotaDecision:
    allowed: bool
    retry_after_seconds: int = 0


class QuotaLimiter:
    """Moving-window quota keyed by an identifier (usually the user id)."""

    def __init__(
        self,
        scope: str,
        limit: str,
        storage: Storage | None = None,
        enabled: bool = True,
    ) -> None:
        self.scope = scope
        self.enabled = enabled
        self._limit = parse(limit)
        self._strategy = MovingWindowRateLimiter(
            storage or storage_from_string(settings.rate_limit_storage_uri)
        )

    def check(self, identifier: str) -> QuotaDecision:
        """Consume one unit of quota for ``identifier``."""
        if not self.enabled:
            return QuotaDecision(allowed=True)
        if self._strategy.hit(self._limit, self.scope, identifier):
            return QuotaDecision(allowed=True)

        reset_time = self._strategy.get_window_stats(
            self._limit, self.scope, identifier
        )[0]
        retry_after = max(1, math.ceil(reset_time - time.time()))
        RATE_LIMITED.labels(self.scope).inc()
        logger.info(
            "Quota exceeded",
            extra={"scope": self.scope, "retry_after": retry_after},
        )
        return QuotaDecision(allowed=False, retry_after_seconds=retry_after)

    def enforce(self, identifier: str) -> None:
        """Raise RateLimitError when ``identifier`` is over quota."""
        decision = self.check(identifier)
        if not decision.allowed:
            raise RateLimitError(decision.retry_after_seconds)


def build_quota(scope: str, limit: str) -> QuotaLimiter:
    return QuotaLimiter(scope, limit, enabled=settings.rate_limit_enabled)


post_quota = build_quota("posts", settings.post_rate_limit)
comment_quota = build_quota("comments", settings.comment_rate_limit)
like_quota = build_quota("likes", settings.like_rate_limit)
