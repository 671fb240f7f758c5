"""Transient values passed between the fetcher and the driver.

Example:
    >>> from datetime import datetime, UTC
    >>> from auditfeed.models.page import FetchResult, Page, Window
    >>> window = Window(
    ...     start=datetime(2024, 1, 1, tzinfo=UTC),
    ...     end=datetime(2024, 1, 2, tzinfo=UTC),
    ... )
    >>> window.start < window.end
    True
    >>> FetchResult.throttled(retry_after=5).is_throttled
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from auditfeed.models.record import AuditRecord

# Token sent to the fetcher: an integer offset, an opaque cursor, or nothing
Token = int | str | None

HTTP_TOO_MANY_REQUESTS = 429


@dataclass(frozen=True)
class Window:
    """Time range queried during one run.

    Attributes:
        start: Inclusive lower bound.
        end: Upper bound (wall-clock time when the pass began).
    """

    start: datetime
    end: datetime


@dataclass(frozen=True)
class Page:
    """One page of records plus how to ask for the next one.

    Attributes:
        records: Records in the order the API returned them.
        continuation: Next cursor (cursor style) or None when absent.
        offset: Offset the API reports for this page (offset style).
    """

    records: tuple[AuditRecord, ...] = ()
    continuation: str | None = None
    offset: int | None = None

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class RateLimitSignal:
    """Throttling hint taken from a 429 response."""

    retry_after_seconds: int | None = None


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a single fetch.

    Attributes:
        page: The page, empty when throttled.
        status: HTTP status of the response.
        retry_after: Parsed ``Retry-After`` header, if any.
    """

    page: Page = field(default_factory=Page)
    status: int = 200
    retry_after: int | None = None

    @property
    def is_throttled(self) -> bool:
        return self.status == HTTP_TOO_MANY_REQUESTS

    @property
    def rate_limit_signal(self) -> RateLimitSignal:
        return RateLimitSignal(retry_after_seconds=self.retry_after)

    @classmethod
    def throttled(cls, retry_after: int | None = None) -> FetchResult:
        """Build a throttled result."""
        return cls(status=HTTP_TOO_MANY_REQUESTS, retry_after=retry_after)


__all__ = [
    "FetchResult",
    "HTTP_TOO_MANY_REQUESTS",
    "Page",
    "RateLimitSignal",
    "Token",
    "Window",
]
