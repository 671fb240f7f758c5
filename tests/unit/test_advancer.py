"""Tests for auditfeed.advancer."""

from __future__ import annotations

from datetime import timedelta

import pytest
from conftest import T0, make_record

from auditfeed.advancer import CheckpointAdvancer
from auditfeed.core.checkpoint import Checkpoint
from auditfeed.models import AuditRecord, Page, Window

WINDOW = Window(start=T0, end=T0 + timedelta(hours=1))


def page(*records: AuditRecord, offset: int | None = 0) -> Page:
    return Page(records=tuple(records), offset=offset)


class TestWatermark:
    """Watermark advancement."""

    def test_first_page_advances_past_newest(self) -> None:
        """New watermark is the first record's time plus one second."""
        cp = Checkpoint(watermark=T0)
        outcome = CheckpointAdvancer().advance(
            cp, page(make_record(1, 100), make_record(2, 50)), WINDOW, first_page=True
        )
        assert outcome.checkpoint.watermark == T0 + timedelta(seconds=101)

    def test_later_page_does_not_advance(self) -> None:
        cp = Checkpoint(watermark=T0)
        outcome = CheckpointAdvancer().advance(
            cp, page(make_record(1, 100), offset=1000), WINDOW, first_page=False
        )
        assert outcome.checkpoint.watermark == T0

    def test_never_moves_backwards(self) -> None:
        cp = Checkpoint(watermark=T0 + timedelta(seconds=500))
        outcome = CheckpointAdvancer().advance(
            cp, page(make_record(1, 100)), WINDOW, first_page=True
        )
        assert outcome.checkpoint.watermark == T0 + timedelta(seconds=500)

    def test_empty_page_unchanged(self) -> None:
        cp = Checkpoint(watermark=T0, position=0)
        outcome = CheckpointAdvancer().advance(cp, page(), WINDOW, first_page=True)
        assert outcome.checkpoint == cp
        assert outcome.records == []

    def test_custom_boundary_step(self) -> None:
        advancer = CheckpointAdvancer(boundary_step=timedelta(milliseconds=1))
        outcome = advancer.advance(
            Checkpoint(watermark=T0), page(make_record(1, 10)), WINDOW, first_page=True
        )
        assert outcome.checkpoint.watermark == T0 + timedelta(seconds=10, milliseconds=1)

    def test_unparseable_newest_keeps_watermark(self, caplog) -> None:
        """A bad timestamp on the newest record leaves the watermark alone."""
        bad = AuditRecord(id="x", created="yesterday")
        with caplog.at_level("ERROR", logger="auditfeed.advancer"):
            outcome = CheckpointAdvancer().advance(
                Checkpoint(watermark=T0), page(bad, make_record(2, 30)), WINDOW, first_page=True
            )
        assert outcome.checkpoint.watermark == T0
        assert "watermark not advanced" in caplog.text

    def test_rejects_non_positive_step(self) -> None:
        with pytest.raises(ValueError):
            CheckpointAdvancer(boundary_step=timedelta(0))


class TestRangeFilter:
    """Out-of-range records are dropped."""

    def test_drops_records_before_window(self) -> None:
        outcome = CheckpointAdvancer().advance(
            Checkpoint(watermark=T0),
            page(make_record(1, 100), make_record(2, -1), make_record(3, -3600)),
            WINDOW,
            first_page=True,
        )
        assert [r.id for r in outcome.records] == ["1"]
        assert outcome.dropped == 2

    def test_window_start_is_inclusive(self) -> None:
        outcome = CheckpointAdvancer().advance(
            Checkpoint(watermark=T0), page(make_record(1, 0)), WINDOW, first_page=True
        )
        assert [r.id for r in outcome.records] == ["1"]

    def test_keeps_records_after_window_end(self) -> None:
        """Only records older than both bounds are dropped."""
        outcome = CheckpointAdvancer().advance(
            Checkpoint(watermark=T0), page(make_record(1, 7200)), WINDOW, first_page=True
        )
        assert [r.id for r in outcome.records] == ["1"]
        assert outcome.dropped == 0

    def test_filters_against_pass_start_not_new_watermark(self) -> None:
        """Records between the pass start and the new watermark are kept."""
        outcome = CheckpointAdvancer().advance(
            Checkpoint(watermark=T0),
            page(make_record(1, 300), make_record(2, 200), make_record(3, 100)),
            WINDOW,
            first_page=True,
        )
        assert outcome.checkpoint.watermark == T0 + timedelta(seconds=301)
        assert [r.id for r in outcome.records] == ["1", "2", "3"]

    def test_unparseable_record_is_emitted(self) -> None:
        bad = AuditRecord(id="x", created="")
        outcome = CheckpointAdvancer().advance(
            Checkpoint(watermark=T0), page(make_record(1, 10), bad), WINDOW, first_page=True
        )
        assert [r.id for r in outcome.records] == ["1", "x"]
        assert outcome.unparsed == 1

    def test_preserves_fetch_order(self) -> None:
        records = [make_record(i, 600 - i) for i in range(5)]
        outcome = CheckpointAdvancer().advance(
            Checkpoint(watermark=T0), page(*records), WINDOW, first_page=True
        )
        assert [r.id for r in outcome.records] == ["0", "1", "2", "3", "4"]
