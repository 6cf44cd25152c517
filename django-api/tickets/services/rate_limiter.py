"""Fixed-window rate limiting on the shared Django cache.

Buckets live in the cache configured by ``TICKETS_RATE_LIMIT_CACHE`` (Redis in
deployment) so every worker sees the same counts. Each bucket key carries the
start of its window, so a new window starts from zero without any reset step.

If the shared cache errors, counting moves to a process-local cache for a
cooldown period. Throttling then becomes per-worker instead of disappearing.
"""

import hashlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from django.core.cache import BaseCache

from tickets.domain.errors import RateLimitedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    scope: str
    backend: str = "shared"

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(self.remaining, 0)),
            "X-RateLimit-Reset": str(self.reset_at),
            "X-RateLimit-Scope": self.scope,
        }

    def retry_after(self, now: float) -> int:
        return max(1, int(self.reset_at - now))


@dataclass(frozen=True)
class Limit:
    requests: int
    window_seconds: int


class RateLimiter:
    """Counts requests per key in fixed windows."""

    def __init__(
        self,
        cache: BaseCache,
        fallback: BaseCache | None = None,
        cooldown_seconds: int = 60,
        clock: Callable[[], float] = time.time,
        prefix: str = "ratelimit",
    ) -> None:
        self._cache = cache
        self._fallback = fallback
        self._cooldown = max(cooldown_seconds, 5)
        self._clock = clock
        self._prefix = prefix
        self._shared_disabled_until = 0.0

    def now(self) -> float:
        return self._clock()

    def consume(self, key: str, limit: int, window_seconds: int, scope: str = "") -> RateLimitDecision:
        """Count one request against ``key`` and report whether it is allowed."""
        now = self._clock()
        window_start = int(now // window_seconds) * window_seconds
        reset_at = window_start + window_seconds
        bucket = f"{self._prefix}:{key}:{window_start}"
        timeout = window_seconds + 1

        backend = "shared"
        if self._fallback is not None and now < self._shared_disabled_until:
            count, backend = self._increment(self._fallback, bucket, timeout), "local"
        else:
            try:
                count = self._increment(self._cache, bucket, timeout)
            except Exception:
                if self._fallback is None:
                    raise
                self._disable_shared(now)
                count, backend = self._increment(self._fallback, bucket, timeout), "local"

        return RateLimitDecision(
            allowed=count <= limit,
            limit=limit,
            remaining=max(limit - count, 0),
            reset_at=reset_at,
            scope=scope or key,
            backend=backend,
        )

    @staticmethod
    def _increment(cache: BaseCache, bucket: str, timeout: int) -> int:
        cache.add(bucket, 0, timeout=timeout)
        try:
            return cache.incr(bucket)
        except ValueError:
            # Bucket expired between add() and incr().
            cache.add(bucket, 0, timeout=timeout)
            return cache.incr(bucket)

    def _disable_shared(self, now: float) -> None:
        first_failure = now >= self._shared_disabled_until
        self._shared_disabled_until = now + self._cooldown
        if first_failure:
            logger.warning(
                "Rate limit cache unavailable, counting locally for %ss",
                self._cooldown,
                exc_info=True,
            )


def email_digest(email: str) -> str:
    """Fixed-length bucket id for an email; the raw value is unvalidated here."""
    return hashlib.sha256((email or "none").encode()).hexdigest()


class RegistrationThrottle:
    """Per-IP and per-email gate in front of ticket registration."""

    def __init__(self, limiter: RateLimiter, ip_limit: Limit, email_limit: Limit) -> None:
        self._limiter = limiter
        self._ip_limit = ip_limit
        self._email_limit = email_limit

    def check(self, ip: str, email: str) -> RateLimitDecision:
        """Consume one request from both scopes.

        Both counters are incremented on every call, whatever the outcome.

        Raises:
            RateLimitedError: If either scope is exhausted.
        """
        decisions = [
            self._limiter.consume(
                f"tickets:ip:{ip or 'unknown'}",
                self._ip_limit.requests,
                self._ip_limit.window_seconds,
                scope="ip",
            ),
            self._limiter.consume(
                f"tickets:email:{email_digest(email)}",
                self._email_limit.requests,
                self._email_limit.window_seconds,
                scope="email",
            ),
        ]
        blocked = next((d for d in decisions if not d.allowed), None)
        if blocked is not None:
            logger.info("Registration throttled by %s scope", blocked.scope)
            raise RateLimitedError(blocked)
        return min(decisions, key=lambda d: d.remaining)


def consume_or_raise(
    limiter: RateLimiter, key: str, limit: Limit, scope: str
) -> RateLimitDecision:
    decision = limiter.consume(key, limit.requests, limit.window_seconds, scope=scope)
    if not decision.allowed:
        raise RateLimitedError(decision)
    return decision
