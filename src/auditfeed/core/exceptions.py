"""Custom exceptions.

auditfeed uses a small hierarchy of exceptions so callers can tell
resumable conditions from fatal ones:

Example:
    >>> from auditfeed.core.exceptions import AuditFeedError, FetchError
    >>> isinstance(FetchError("boom", status=500), AuditFeedError)
    True
    >>> try:
    ...     raise FetchError("auth failed", status=401)
    ... except AuditFeedError as e:
    ...     print(f"Caught: {type(e).__name__}")
    Caught: FetchError
"""

from __future__ import annotations


class AuditFeedError(Exception):
    """Base exception for auditfeed.

    Example:
        >>> from auditfeed.core.exceptions import AuditFeedError
        >>> e = AuditFeedError("something went wrong")
        >>> str(e)
        'something went wrong'
    """


class CheckpointError(AuditFeedError):
    """Checkpoint could not be read or written.

    Example:
        >>> from auditfeed.core.exceptions import CheckpointError
        >>> raise CheckpointError("disk full")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        CheckpointError: disk full
    """


class FetchError(AuditFeedError):
    """A page fetch failed for a reason other than throttling.

    Example:
        >>> from auditfeed.core.exceptions import FetchError
        >>> err = FetchError("Unauthorized", status=401, source="jira")
        >>> (err.status, err.source)
        (401, 'jira')
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        source: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.source = source
        self.cause = cause


class RateLimitExhaustedError(AuditFeedError):
    """Throttling persisted past the configured attempt limit.

    Example:
        >>> from auditfeed.core.exceptions import RateLimitExhaustedError
        >>> err = RateLimitExhaustedError(attempts=3, token=2000)
        >>> str(err)
        'Still throttled after 3 attempts at position 2000'
    """

    def __init__(self, attempts: int, token: int | str | None) -> None:
        self.attempts = attempts
        self.token = token
        super().__init__(f"Still throttled after {attempts} attempts at position {token}")


class ConfigurationError(AuditFeedError):
    """Configuration is invalid.

    Example:
        >>> from auditfeed.core.exceptions import ConfigurationError
        >>> raise ConfigurationError("missing key")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ConfigurationError: missing key
    """
