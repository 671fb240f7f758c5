"""Tests for auditfeed.core.checkpoint."""

from __future__ import annotations

import json
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from auditfeed.core.checkpoint import (
    Checkpoint,
    FileCheckpointStore,
    MemoryCheckpointStore,
)
from auditfeed.core.exceptions import CheckpointError
from auditfeed.models import Window

WATERMARK = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)


class TestCheckpointBasic:
    """Basic Checkpoint tests."""

    def test_create_minimal(self) -> None:
        """Only the watermark is required."""
        cp = Checkpoint(watermark=WATERMARK)
        assert cp.watermark == WATERMARK
        assert cp.position == 0
        assert cp.in_progress is False
        assert cp.window is None

    def test_truncates_to_milliseconds(self) -> None:
        """Sub-millisecond precision is dropped on construction."""
        cp = Checkpoint(watermark=WATERMARK.replace(microsecond=123456))
        assert cp.watermark.microsecond == 123000

    def test_naive_watermark_assumed_utc(self) -> None:
        cp = Checkpoint(watermark=datetime(2024, 3, 1, 12, 0, 0))
        assert cp.watermark == WATERMARK

    def test_initial_uses_lookback(self) -> None:
        """Default checkpoint starts lookback before now."""
        now = datetime(2024, 6, 1, tzinfo=UTC)
        cp = Checkpoint.initial(timedelta(days=365), now=now)
        assert cp.watermark == now - timedelta(days=365)
        assert cp.position == 0

    def test_initial_cursor_position(self) -> None:
        cp = Checkpoint.initial(timedelta(days=1), position=None, now=WATERMARK)
        assert cp.position is None


class TestCheckpointPass:
    """Pass window pinning."""

    def test_begin_pass_pins_window(self) -> None:
        window = Window(start=WATERMARK, end=WATERMARK + timedelta(hours=1))
        cp = Checkpoint(watermark=WATERMARK).begin_pass(window)
        assert cp.in_progress is True
        assert cp.window == window

    def test_complete_pass_resets(self) -> None:
        """Completing a pass clears the window and resets the position."""
        window = Window(start=WATERMARK, end=WATERMARK + timedelta(hours=1))
        cp = Checkpoint(watermark=WATERMARK, position=2000).begin_pass(window)
        done = cp.complete_pass()
        assert done.position == 0
        assert done.window is None
        assert done.watermark == WATERMARK
        assert cp.position == 2000  # Original unchanged

    def test_complete_pass_cursor(self) -> None:
        cp = Checkpoint(watermark=WATERMARK, position="abc").complete_pass(None)
        assert cp.position is None

    def test_update_position(self) -> None:
        cp = Checkpoint(watermark=WATERMARK)
        updated = cp.update(position=1000)
        assert updated.position == 1000
        assert updated.watermark == WATERMARK


class TestCheckpointSerialization:
    """to_dict/from_dict tests."""

    def test_offset_format(self) -> None:
        """Offset checkpoints use the offset/last_event_date keys."""
        data = Checkpoint(watermark=WATERMARK, position=1000).to_dict()
        assert data == {"offset": 1000, "last_event_date": "2024-03-01T12:00:00.000+00:00"}

    def test_cursor_format(self) -> None:
        data = Checkpoint(watermark=WATERMARK, position="c2").to_dict()
        assert data["cursor"] == "c2"
        assert "offset" not in data

    def test_window_serialized_when_pinned(self) -> None:
        window = Window(start=WATERMARK, end=WATERMARK + timedelta(hours=1))
        data = Checkpoint(watermark=WATERMARK, position=1000).begin_pass(window).to_dict()
        assert data["window_start"] == "2024-03-01T12:00:00.000+00:00"
        assert data["window_end"] == "2024-03-01T13:00:00.000+00:00"

    def test_roundtrip_in_progress(self) -> None:
        window = Window(start=WATERMARK, end=WATERMARK + timedelta(minutes=5))
        cp = Checkpoint(watermark=WATERMARK + timedelta(seconds=31), position=3000)
        cp = cp.begin_pass(window)
        assert Checkpoint.from_dict(cp.to_dict()) == cp

    def test_reads_jira_timestamp_format(self) -> None:
        """Timestamps in the API's own format are accepted."""
        cp = Checkpoint.from_dict({"offset": 0, "last_event_date": "2024-03-01T12:00:00.000+0000"})
        assert cp.watermark == WATERMARK

    def test_missing_position(self) -> None:
        cp = Checkpoint.from_dict({"last_event_date": "2024-03-01T12:00:00.000+00:00"})
        assert cp.position is None

    @pytest.mark.parametrize("offset", [-1, "10", True, 1.5])
    def test_invalid_offset(self, offset) -> None:
        with pytest.raises(ValueError):
            Checkpoint.from_dict({"offset": offset, "last_event_date": "2024-03-01T12:00:00Z"})

    def test_missing_watermark(self) -> None:
        with pytest.raises(KeyError):
            Checkpoint.from_dict({"offset": 0})


class TestMemoryCheckpointStore:
    """MemoryCheckpointStore tests."""

    async def test_save_and_read(self) -> None:
        store = MemoryCheckpointStore()
        cp = Checkpoint(watermark=WATERMARK, position=1000)
        await store.save(cp)
        assert await store.read() == cp
        assert store.history == [cp]

    async def test_read_empty(self) -> None:
        assert await MemoryCheckpointStore().read() is None

    async def test_delete(self) -> None:
        store = MemoryCheckpointStore(Checkpoint(watermark=WATERMARK))
        assert await store.delete() is True
        assert await store.delete() is False

    async def test_load_default(self) -> None:
        """load() falls back to the lookback window when nothing is stored."""
        now = datetime(2024, 6, 1, tzinfo=UTC)
        cp = await MemoryCheckpointStore().load(timedelta(days=2), now=now)
        assert cp.watermark == now - timedelta(days=2)
        assert cp.position == 0


class TestFileCheckpointStore:
    """FileCheckpointStore tests."""

    async def test_save_and_read(self) -> None:
        """Can save and read back a checkpoint."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = FileCheckpointStore(Path(tmpdir) / "state.json")
            cp = Checkpoint(watermark=WATERMARK, position=1000)
            await store.save(cp)
            assert await store.read() == cp

    async def test_file_contents(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            await FileCheckpointStore(path).save(Checkpoint(watermark=WATERMARK, position=0))
            data = json.loads(path.read_text())
            assert data == {"offset": 0, "last_event_date": "2024-03-01T12:00:00.000+00:00"}

    async def test_no_tmp_file_left(self) -> None:
        """Atomic save leaves only the target file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            store = FileCheckpointStore(path)
            await store.save(Checkpoint(watermark=WATERMARK))
            await store.save(Checkpoint(watermark=WATERMARK, position=1000))
            assert sorted(p.name for p in Path(tmpdir).iterdir()) == ["state.json"]

    async def test_creates_parent_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "state.json"
            await FileCheckpointStore(path).save(Checkpoint(watermark=WATERMARK))
            assert path.exists()

    async def test_save_failure_keeps_previous(self) -> None:
        """A failed write raises and leaves the old checkpoint readable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            store = FileCheckpointStore(path)
            first = Checkpoint(watermark=WATERMARK, position=1000)
            await store.save(first)

            # A directory where the temp file should go makes open() fail
            (Path(tmpdir) / "state.json.tmp").mkdir()
            with pytest.raises(CheckpointError):
                await store.save(Checkpoint(watermark=WATERMARK, position=2000))

            assert await store.read() == first

    async def test_read_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert await FileCheckpointStore(Path(tmpdir) / "absent.json").read() is None

    async def test_read_corrupt_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            path.write_text("{not json")
            with pytest.raises(CheckpointError):
                await FileCheckpointStore(path).read()

    async def test_load_corrupt_degrades(self, caplog) -> None:
        """load() logs a warning and returns the default for a corrupt file."""
        now = datetime(2024, 6, 1, tzinfo=UTC)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            path.write_text('{"offset": "oops", "last_event_date": "yesterday"}')
            with caplog.at_level("WARNING", logger="auditfeed.checkpoint"):
                cp = await FileCheckpointStore(path).load(timedelta(days=365), now=now)
            assert cp.watermark == now - timedelta(days=365)
            assert cp.position == 0
            assert "Error loading checkpoint" in caplog.text

    async def test_load_wrong_shape_degrades(self) -> None:
        now = datetime(2024, 6, 1, tzinfo=UTC)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            path.write_text("[1, 2, 3]")
            cp = await FileCheckpointStore(path).load(timedelta(days=1), now=now)
            assert cp.watermark == now - timedelta(days=1)

    async def test_delete(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            store = FileCheckpointStore(path)
            await store.save(Checkpoint(watermark=WATERMARK))
            assert await store.delete() is True
            assert not path.exists()
            assert await store.delete() is False
