"""Pagination driver - the incremental export loop.

The driver handles the complete flow of one run:
1. Loading the checkpoint and deriving the window
2. Fetching pages sequentially, backing off on throttling
3. Advancing the watermark and filtering each page
4. Emitting in-range records in fetch order
5. Persisting the checkpoint after every page

Example:
    >>> from auditfeed.driver import PaginationDriver, RunStats
    >>> hasattr(PaginationDriver, "run")
    True
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from auditfeed.advancer import CheckpointAdvancer
from auditfeed.core.checkpoint import DEFAULT_LOOKBACK, Checkpoint, CheckpointStore
from auditfeed.core.exceptions import CheckpointError, RateLimitExhaustedError
from auditfeed.emitter.base import RecordEmitter
from auditfeed.fetcher.base import PageFetcher
from auditfeed.http.backoff import BackoffPolicy
from auditfeed.models.page import FetchResult, Token, Window
from auditfeed.models.record import AuditRecord
from auditfeed.pagination import PaginationStyle
from auditfeed.utils.timestamps import format_timestamp, utcnow

DEFAULT_PAGE_SIZE = 1000


@dataclass
class RunStats:
    """Statistics from one export run.

    Example:
        >>> from auditfeed.driver import RunStats
        >>> stats = RunStats(source="jira", records_seen=10, records_dropped=2)
        >>> stats.drop_rate
        0.2
    """

    source: str
    pages: int = 0
    records_seen: int = 0
    records_emitted: int = 0
    records_dropped: int = 0
    records_unparsed: int = 0
    emit_errors: int = 0
    throttles: int = 0
    seconds_slept: float = 0.0
    completed: bool = False
    checkpoint: Checkpoint | None = None
    duration_ms: float = 0.0

    @property
    def drop_rate(self) -> float:
        """Share of fetched records that were out of range."""
        if self.records_seen == 0:
            return 0.0
        return self.records_dropped / self.records_seen


class PaginationDriver:
    """Drive fetch/advance/emit/persist until the window is exhausted.

    One fetch is in flight at a time. A throttled fetch is retried with
    the same token after the backoff delay; any other fetch error aborts
    the run and the last persisted checkpoint remains the resume point.

    Example:
        >>> import asyncio
        >>> from auditfeed.driver import PaginationDriver
        >>> from auditfeed.core.checkpoint import MemoryCheckpointStore
        >>> from auditfeed.emitter import MemoryEmitter
        >>> from auditfeed.models import FetchResult
        >>> from auditfeed.pagination import OffsetStyle
        >>> class EmptyFetcher:
        ...     name = "empty"
        ...     async def fetch(self, window, token, page_size, filter_query=""):
        ...         return FetchResult()
        >>> driver = PaginationDriver(
        ...     EmptyFetcher(), MemoryCheckpointStore(), MemoryEmitter(), style=OffsetStyle()
        ... )
        >>> asyncio.run(driver.run()).completed
        True
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        store: CheckpointStore,
        emitter: RecordEmitter,
        *,
        style: PaginationStyle,
        backoff: BackoffPolicy | None = None,
        advancer: CheckpointAdvancer | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        filter_query: str = "",
        lookback: timedelta = DEFAULT_LOOKBACK,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            fetcher: Source of pages.
            store: Checkpoint persistence.
            emitter: Sink for in-range records.
            style: Offset or cursor pagination.
            backoff: Throttling and pacing policy.
            advancer: Watermark/range logic.
            page_size: Records requested per page.
            filter_query: Free-text filter passed to the fetcher.
            lookback: Window length used when no checkpoint exists.
            sleep: Awaitable sleep (tests pass a recorder).
            clock: Wall-clock source for the window's upper bound.
            logger: Logger for progress and errors.
        """
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._fetcher = fetcher
        self._store = store
        self._emitter = emitter
        self._style = style
        self._backoff = backoff or BackoffPolicy()
        self._logger = logger or logging.getLogger("auditfeed.driver")
        self._advancer = advancer or CheckpointAdvancer(logger=self._logger)
        self._page_size = page_size
        self._filter_query = filter_query
        self._lookback = lookback
        self._sleep = sleep
        self._clock = clock

    async def run(self, *, from_override: datetime | None = None) -> RunStats:
        """Run one export pass from the stored checkpoint.

        Args:
            from_override: Start a fresh pass at this time instead of the
                stored watermark.

        Returns:
            Statistics for the run.

        Raises:
            FetchError: If a fetch fails for a reason other than throttling.
            RateLimitExhaustedError: If throttling outlasts ``max_attempts``.
        """
        checkpoint = await self._store.load(
            self._lookback,
            initial_position=self._style.initial_token,
            now=self._clock(),
        )
        return await self.run_from(checkpoint, from_override=from_override)

    def plan(
        self,
        checkpoint: Checkpoint,
        *,
        from_override: datetime | None = None,
    ) -> tuple[Checkpoint, Window, Token]:
        """Derive the window and starting token for a run.

        An interrupted pass is resumed against its pinned window; otherwise
        a fresh pass covers ``[watermark, now]``.

        Returns:
            The checkpoint with the window pinned, the window and the token.
        """
        initial = self._style.initial_token

        if from_override is not None:
            self._logger.info(f"Overriding start date with {format_timestamp(from_override)}")
            checkpoint = checkpoint.update(watermark=from_override).complete_pass(initial)

        token = self._style.resume_token(checkpoint.position)
        window = checkpoint.window
        if window is not None and token != initial:
            self._logger.info(f"Resuming interrupted pass at position {token}")
        else:
            if token != initial:
                self._logger.warning(
                    f"Checkpoint position {token} has no pass window; restarting pass"
                )
            token = initial
            window = Window(start=checkpoint.watermark, end=self._clock())
            checkpoint = checkpoint.complete_pass(initial)

        return checkpoint.begin_pass(window), window, token

    async def run_from(
        self,
        checkpoint: Checkpoint,
        *,
        from_override: datetime | None = None,
    ) -> RunStats:
        """Run one export pass starting at ``checkpoint``."""
        start = time.monotonic()
        stats = RunStats(source=self._fetcher.name)
        loaded = checkpoint
        checkpoint, window, token = self.plan(checkpoint, from_override=from_override)

        if window.start >= window.end:
            # Watermark at or ahead of the clock
            self._logger.info(
                f"No new window: watermark {format_timestamp(window.start)} "
                f"is not before {format_timestamp(window.end)}"
            )
            stats.completed = True
            stats.checkpoint = loaded
            stats.duration_ms = (time.monotonic() - start) * 1000
            return stats

        self._logger.info(
            f"Getting records from {format_timestamp(window.start)} "
            f"to {format_timestamp(window.end)}"
        )

        try:
            while True:
                result = await self._fetch(window, token, stats)
                page = result.page
                stats.pages += 1
                stats.records_seen += len(page)

                outcome = self._advancer.advance(
                    checkpoint,
                    page,
                    window,
                    first_page=self._style.is_first_page(token, page),
                )
                stats.records_dropped += outcome.dropped
                stats.records_unparsed += outcome.unparsed
                for record in outcome.records:
                    self._emit(record, stats)

                last = self._style.is_last_page(page, self._page_size)
                if last:
                    checkpoint = outcome.checkpoint.complete_pass(self._style.initial_token)
                else:
                    token = self._style.next_token(token, page)
                    checkpoint = outcome.checkpoint.update(position=token)

                await self._persist(checkpoint)
                stats.checkpoint = checkpoint

                if last:
                    break

                if self._backoff.page_delay > 0:
                    await self._sleep(self._backoff.page_delay)
                    stats.seconds_slept += self._backoff.page_delay

            stats.completed = True
        finally:
            stats.duration_ms = (time.monotonic() - start) * 1000

        self._logger.info(
            f"Export complete: {stats.records_emitted} records emitted "
            f"from {stats.pages} pages ({stats.records_dropped} out of range)"
        )
        return stats

    async def _fetch(self, window: Window, token: Token, stats: RunStats) -> FetchResult:
        """Fetch the page at ``token``, waiting out throttling."""
        attempt = 0
        while True:
            self._logger.debug(
                f"Getting records from {format_timestamp(window.start)} "
                f"to {format_timestamp(window.end)}, position {token}"
            )
            result = await self._fetcher.fetch(
                window, token, self._page_size, self._filter_query
            )
            if not result.is_throttled:
                return result

            attempt += 1
            stats.throttles += 1
            if not self._backoff.should_retry(attempt):
                raise RateLimitExhaustedError(attempt, token)

            delay = self._backoff.next_delay(result.rate_limit_signal)
            self._logger.warning(f"Rate limited at position {token}, retrying in {delay}s")
            await self._sleep(delay)
            stats.seconds_slept += delay

    def _emit(self, record: AuditRecord, stats: RunStats) -> None:
        try:
            self._emitter.emit(record)
        except Exception as e:
            stats.emit_errors += 1
            self._logger.error(f"Error emitting record {record.id}: {e}", exc_info=True)
            return
        stats.records_emitted += 1

    async def _persist(self, checkpoint: Checkpoint) -> None:
        try:
            await self._store.save(checkpoint)
        except CheckpointError as e:
            self._logger.error(f"Error saving state: {e}")


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "PaginationDriver",
    "RunStats",
]
