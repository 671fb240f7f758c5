"""Checkpoint support for resumable incremental exports.

A checkpoint records how far the exporter has read: the pagination
position inside the current pass and the watermark from which the next
fresh pass starts. It is written after every page so that a crash loses at
most the page being processed.

Example:
    >>> import asyncio
    >>> from datetime import datetime, UTC
    >>> from auditfeed.core.checkpoint import Checkpoint, MemoryCheckpointStore
    >>>
    >>> async def example():
    ...     store = MemoryCheckpointStore()
    ...     checkpoint = Checkpoint(
    ...         watermark=datetime(2024, 1, 1, tzinfo=UTC),
    ...         position=1000,
    ...     )
    ...     await store.save(checkpoint)
    ...     loaded = await store.read()
    ...     return loaded.position if loaded else 0
    >>> asyncio.run(example())
    1000
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from auditfeed.core.exceptions import CheckpointError
from auditfeed.models.page import Token, Window
from auditfeed.utils.timestamps import format_timestamp, parse_timestamp, truncate_ms, utcnow

DEFAULT_LOOKBACK = timedelta(days=365)


@dataclass(frozen=True)
class Checkpoint:
    """Durable export progress.

    Attributes:
        watermark: Lower bound of the next fresh window. Never moves
            backwards across successful runs.
        position: Offset (int) or cursor (str) inside the current pass;
            ``0``/``None`` when no pass is in progress.
        window_start: Lower bound of the in-progress pass, if any.
        window_end: Upper bound of the in-progress pass, if any.

    Example:
        >>> from datetime import datetime, UTC
        >>> from auditfeed.core.checkpoint import Checkpoint
        >>> cp = Checkpoint(watermark=datetime(2024, 1, 1, tzinfo=UTC))
        >>> cp.position, cp.in_progress
        (0, False)
    """

    watermark: datetime
    position: Token = 0
    window_start: datetime | None = None
    window_end: datetime | None = None

    def __post_init__(self) -> None:
        # Stored at millisecond precision so a file round trip is exact
        object.__setattr__(self, "watermark", truncate_ms(self.watermark))
        if self.window_start is not None:
            object.__setattr__(self, "window_start", truncate_ms(self.window_start))
        if self.window_end is not None:
            object.__setattr__(self, "window_end", truncate_ms(self.window_end))

    @classmethod
    def initial(
        cls,
        lookback: timedelta = DEFAULT_LOOKBACK,
        *,
        position: Token = 0,
        now: datetime | None = None,
    ) -> Checkpoint:
        """Checkpoint used on first run or when the stored one is unusable.

        Example:
            >>> from datetime import datetime, timedelta, UTC
            >>> from auditfeed.core.checkpoint import Checkpoint
            >>> now = datetime(2024, 6, 1, tzinfo=UTC)
            >>> Checkpoint.initial(timedelta(days=1), now=now).watermark.isoformat()
            '2024-05-31T00:00:00+00:00'
        """
        now = now or utcnow()
        return cls(watermark=now - lookback, position=position)

    @property
    def in_progress(self) -> bool:
        """Whether a pass was interrupted and should be resumed."""
        return self.window_start is not None and self.window_end is not None

    @property
    def window(self) -> Window | None:
        """Window of the in-progress pass."""
        if self.window_start is None or self.window_end is None:
            return None
        return Window(start=self.window_start, end=self.window_end)

    def update(self, **changes: Any) -> Checkpoint:
        """Create an updated checkpoint with new values.

        Example:
            >>> from datetime import datetime, UTC
            >>> from auditfeed.core.checkpoint import Checkpoint
            >>> cp = Checkpoint(watermark=datetime(2024, 1, 1, tzinfo=UTC))
            >>> cp.update(position=2000).position
            2000
        """
        return replace(self, **changes)

    def begin_pass(self, window: Window) -> Checkpoint:
        """Pin ``window`` so an interrupted pass resumes against it."""
        return replace(self, window_start=window.start, window_end=window.end)

    def complete_pass(self, initial_position: Token = 0) -> Checkpoint:
        """Reset the position so the next run starts fresh from the watermark."""
        return replace(self, position=initial_position, window_start=None, window_end=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert checkpoint to dictionary for serialization.

        Example:
            >>> from datetime import datetime, UTC
            >>> from auditfeed.core.checkpoint import Checkpoint
            >>> Checkpoint(watermark=datetime(2024, 1, 1, tzinfo=UTC), position=5).to_dict()
            {'offset': 5, 'last_event_date': '2024-01-01T00:00:00.000+00:00'}
        """
        data: dict[str, Any] = {}
        if isinstance(self.position, int):
            data["offset"] = self.position
        else:
            data["cursor"] = self.position
        data["last_event_date"] = format_timestamp(self.watermark)
        if self.window_start is not None:
            data["window_start"] = format_timestamp(self.window_start)
        if self.window_end is not None:
            data["window_end"] = format_timestamp(self.window_end)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Checkpoint:
        """Create checkpoint from dictionary.

        Raises:
            KeyError: If ``last_event_date`` is missing.
            ValueError: If a field has the wrong type or format.

        Example:
            >>> from auditfeed.core.checkpoint import Checkpoint
            >>> cp = Checkpoint.from_dict(
            ...     {"cursor": "abc", "last_event_date": "2024-01-01T00:00:00.000+00:00"}
            ... )
            >>> cp.position
            'abc'
        """
        position: Token
        if "offset" in data:
            position = data["offset"]
            if not isinstance(position, int) or isinstance(position, bool) or position < 0:
                raise ValueError(f"Invalid offset: {position!r}")
        elif "cursor" in data:
            position = data["cursor"]
            if position is not None and not isinstance(position, str):
                raise ValueError(f"Invalid cursor: {position!r}")
        else:
            position = None

        window_start = data.get("window_start")
        window_end = data.get("window_end")
        return cls(
            watermark=parse_timestamp(data["last_event_date"]),
            position=position,
            window_start=parse_timestamp(window_start) if window_start else None,
            window_end=parse_timestamp(window_end) if window_end else None,
        )


class CheckpointStore(ABC):
    """Abstract base class for checkpoint storage backends.

    Subclasses implement :meth:`read`, :meth:`save` and :meth:`delete`;
    :meth:`load` layers the never-fail default on top of them.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("auditfeed.checkpoint")

    @abstractmethod
    async def read(self) -> Checkpoint | None:
        """Read the stored checkpoint.

        Returns:
            The checkpoint, or None if nothing is stored.

        Raises:
            CheckpointError: If stored data cannot be read or decoded.
        """
        ...

    @abstractmethod
    async def save(self, checkpoint: Checkpoint) -> None:
        """Replace the stored checkpoint.

        Raises:
            CheckpointError: If the checkpoint could not be written.
        """
        ...

    @abstractmethod
    async def delete(self) -> bool:
        """Delete the stored checkpoint.

        Returns:
            True if a checkpoint was deleted.
        """
        ...

    async def load(
        self,
        lookback: timedelta = DEFAULT_LOOKBACK,
        *,
        initial_position: Token = 0,
        now: datetime | None = None,
    ) -> Checkpoint:
        """Load the stored checkpoint, degrading to a default on any problem.

        Args:
            lookback: How far back a fresh export starts.
            initial_position: Position used by the default checkpoint.
            now: Reference time for the default watermark.

        Returns:
            The stored checkpoint, or ``Checkpoint.initial(...)``.
        """
        try:
            checkpoint = await self.read()
        except CheckpointError as e:
            self._logger.warning(f"Error loading checkpoint: {e}. Starting from default window.")
            checkpoint = None

        if checkpoint is None:
            checkpoint = Checkpoint.initial(lookback, position=initial_position, now=now)
            self._logger.info(
                f"No usable checkpoint, starting from {format_timestamp(checkpoint.watermark)}"
            )
        return checkpoint


class MemoryCheckpointStore(CheckpointStore):
    """In-memory checkpoint store for testing.

    Keeps every saved checkpoint in :attr:`history`.

    Example:
        >>> import asyncio
        >>> from datetime import datetime, UTC
        >>> from auditfeed.core.checkpoint import Checkpoint, MemoryCheckpointStore
        >>> async def example():
        ...     store = MemoryCheckpointStore()
        ...     await store.save(Checkpoint(watermark=datetime(2024, 1, 1, tzinfo=UTC)))
        ...     return len(store.history)
        >>> asyncio.run(example())
        1
    """

    def __init__(
        self,
        checkpoint: Checkpoint | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        self._checkpoint = checkpoint
        self.history: list[Checkpoint] = []

    async def read(self) -> Checkpoint | None:
        return self._checkpoint

    async def save(self, checkpoint: Checkpoint) -> None:
        self._checkpoint = checkpoint
        self.history.append(checkpoint)

    async def delete(self) -> bool:
        existed = self._checkpoint is not None
        self._checkpoint = None
        return existed


class FileCheckpointStore(CheckpointStore):
    """JSON file checkpoint store with atomic replace.

    Writes go to a sibling ``.tmp`` file which is flushed, fsynced and then
    renamed over the target, so a failed write never leaves a partial file.

    Only one process may use a given file at a time; there is no locking.

    Example:
        >>> import asyncio
        >>> import tempfile
        >>> from datetime import datetime, UTC
        >>> from pathlib import Path
        >>> from auditfeed.core.checkpoint import Checkpoint, FileCheckpointStore
        >>> async def example():
        ...     with tempfile.TemporaryDirectory() as tmpdir:
        ...         store = FileCheckpointStore(Path(tmpdir) / "state.json")
        ...         cp = Checkpoint(watermark=datetime(2024, 1, 1, tzinfo=UTC))
        ...         await store.save(cp)
        ...         return await store.read() == cp
        >>> asyncio.run(example())
        True
    """

    def __init__(self, path: Path | str, logger: logging.Logger | None = None) -> None:
        """Initialize file checkpoint store.

        Args:
            path: Checkpoint file location.
            logger: Logger for load/save diagnostics.
        """
        super().__init__(logger)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Checkpoint file location."""
        return self._path

    async def read(self) -> Checkpoint | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return Checkpoint.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CheckpointError(f"Invalid checkpoint file {self._path}: {e}") from e

    async def save(self, checkpoint: Checkpoint) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(checkpoint.to_dict(), f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise CheckpointError(f"Failed to write checkpoint {self._path}: {e}") from e

    async def delete(self) -> bool:
        if self._path.exists():
            self._path.unlink()
            return True
        return False


__all__ = [
    "DEFAULT_LOOKBACK",
    "Checkpoint",
    "CheckpointStore",
    "FileCheckpointStore",
    "MemoryCheckpointStore",
]
