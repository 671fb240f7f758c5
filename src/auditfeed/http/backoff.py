"""Backoff policy for throttled page fetches.

A 429 response is treated as transient: the driver asks the policy how
long to wait and then retries the same request. Each throttle is evaluated
on its own; the delay does not grow across repeated throttles.

Example:
    >>> from auditfeed.http.backoff import BackoffPolicy
    >>> from auditfeed.models import RateLimitSignal
    >>> policy = BackoffPolicy()
    >>> policy.next_delay(RateLimitSignal(retry_after_seconds=5))
    5
    >>> policy.next_delay(None)
    50
"""

from __future__ import annotations

from dataclasses import dataclass

from auditfeed.models.page import RateLimitSignal

DEFAULT_FALLBACK_DELAY = 50
DEFAULT_PAGE_DELAY = 0.2


@dataclass
class BackoffPolicy:
    """Configuration for throttling and pacing.

    Attributes:
        fallback_delay: Seconds to wait when the response has no usable
            ``Retry-After`` value.
        max_delay: Ceiling for a single wait, or None for no ceiling.
        max_attempts: Total attempts for one request while it keeps being
            throttled, or None to retry forever.
        page_delay: Seconds to pause between successful page fetches.
    """

    fallback_delay: int = DEFAULT_FALLBACK_DELAY
    max_delay: int | None = None
    max_attempts: int | None = None
    page_delay: float = DEFAULT_PAGE_DELAY

    def __post_init__(self) -> None:
        if self.fallback_delay < 0:
            raise ValueError("fallback_delay must be >= 0")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.page_delay < 0:
            raise ValueError("page_delay must be >= 0")

    def next_delay(self, signal: RateLimitSignal | None) -> int:
        """Seconds to wait before retrying a throttled request.

        Args:
            signal: Throttling hint from the response, if any.

        Returns:
            The explicit retry-after value when present, the fallback
            otherwise, capped at ``max_delay``.

        Example:
            >>> from auditfeed.http.backoff import BackoffPolicy
            >>> from auditfeed.models import RateLimitSignal
            >>> BackoffPolicy(max_delay=30).next_delay(RateLimitSignal(120))
            30
        """
        delay = self.fallback_delay
        if signal is not None and signal.retry_after_seconds is not None:
            if signal.retry_after_seconds >= 0:
                delay = signal.retry_after_seconds

        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def should_retry(self, attempt: int) -> bool:
        """Whether to retry after the ``attempt``-th consecutive throttle.

        Example:
            >>> from auditfeed.http.backoff import BackoffPolicy
            >>> BackoffPolicy().should_retry(10_000)
            True
            >>> BackoffPolicy(max_attempts=3).should_retry(3)
            False
        """
        if self.max_attempts is None:
            return True
        return attempt < self.max_attempts


__all__ = [
    "DEFAULT_FALLBACK_DELAY",
    "DEFAULT_PAGE_DELAY",
    "BackoffPolicy",
]
