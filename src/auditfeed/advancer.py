"""Checkpoint advancer - watermark and range filtering per page.

Pages arrive newest first, so the first record of the first page of a
result set is the newest record in the window. The next run must start
just after it: the new watermark is its creation time plus one time unit,
which keeps the boundary record from being emitted again.

Example:
    >>> from datetime import datetime, UTC
    >>> from auditfeed.advancer import CheckpointAdvancer
    >>> from auditfeed.core.checkpoint import Checkpoint
    >>> from auditfeed.models import AuditRecord, Page, Window
    >>> window = Window(
    ...     start=datetime(2024, 1, 1, tzinfo=UTC),
    ...     end=datetime(2024, 1, 2, tzinfo=UTC),
    ... )
    >>> page = Page(records=(AuditRecord(id="1", created="2024-01-01T12:00:00.000+0000"),), offset=0)
    >>> outcome = CheckpointAdvancer().advance(
    ...     Checkpoint(watermark=window.start), page, window, first_page=True
    ... )
    >>> outcome.checkpoint.watermark.isoformat()
    '2024-01-01T12:00:01+00:00'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from auditfeed.core.checkpoint import Checkpoint
from auditfeed.models.page import Page, Window
from auditfeed.models.record import AuditRecord
from auditfeed.utils.timestamps import format_timestamp

DEFAULT_BOUNDARY_STEP = timedelta(seconds=1)


@dataclass
class PageOutcome:
    """Result of advancing over one page.

    Attributes:
        checkpoint: Checkpoint with the (possibly) advanced watermark. The
            position is left for the driver to set.
        records: In-range records, in fetch order.
        dropped: Number of out-of-range records skipped.
        unparsed: Number of records whose timestamp could not be parsed.
    """

    checkpoint: Checkpoint
    records: list[AuditRecord] = field(default_factory=list)
    dropped: int = 0
    unparsed: int = 0


class CheckpointAdvancer:
    """Compute the new watermark and filter out-of-range records."""

    def __init__(
        self,
        boundary_step: timedelta = DEFAULT_BOUNDARY_STEP,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the advancer.

        Args:
            boundary_step: Added to the newest record's timestamp so the
                next window excludes it.
            logger: Logger for parse failures and dropped records.
        """
        if boundary_step <= timedelta(0):
            raise ValueError("boundary_step must be positive")
        self._boundary_step = boundary_step
        self._logger = logger or logging.getLogger("auditfeed.advancer")

    def advance(
        self,
        checkpoint: Checkpoint,
        page: Page,
        window: Window,
        *,
        first_page: bool,
    ) -> PageOutcome:
        """Process one page.

        Args:
            checkpoint: Checkpoint before this page.
            page: The fetched page.
            window: Window of the current pass. ``window.start`` is the
                pass's original lower bound.
            first_page: Whether ``page`` starts its result set.

        Returns:
            The advanced checkpoint and the records to emit.
        """
        if first_page and page.records:
            checkpoint = self._advance_watermark(checkpoint, page.records[0])

        outcome = PageOutcome(checkpoint=checkpoint)
        for record in page.records:
            try:
                created = record.created_at()
            except ValueError as e:
                # Cannot range-check it; export rather than lose it
                self._logger.error(f"Error parsing time for record {record.id}: {e}")
                outcome.unparsed += 1
                outcome.records.append(record)
                continue

            if created < window.end and created < window.start:
                self._logger.debug(f"Record created date is out of range: {record.created}")
                outcome.dropped += 1
                continue

            outcome.records.append(record)

        return outcome

    def _advance_watermark(self, checkpoint: Checkpoint, newest: AuditRecord) -> Checkpoint:
        try:
            created = newest.created_at()
        except ValueError as e:
            self._logger.error(f"Error parsing time, watermark not advanced: {e}")
            return checkpoint

        watermark = created + self._boundary_step
        if watermark <= checkpoint.watermark:
            return checkpoint

        self._logger.debug(f"Watermark advanced to {format_timestamp(watermark)}")
        return checkpoint.update(watermark=watermark)


__all__ = [
    "DEFAULT_BOUNDARY_STEP",
    "CheckpointAdvancer",
    "PageOutcome",
]
