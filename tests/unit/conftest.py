"""Shared fakes for auditfeed unit tests."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import pytest

from auditfeed.models import AuditRecord, FetchResult, Page, Window

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)


def ts(seconds: float) -> str:
    """API-style timestamp ``seconds`` after T0."""
    moment = T0 + timedelta(seconds=seconds)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}+0000"


def make_record(record_id: str | int, seconds: float, **attributes) -> AuditRecord:
    return AuditRecord(id=record_id, created=ts(seconds), attributes=attributes)


def offset_page(records: Iterable[AuditRecord], offset: int) -> FetchResult:
    return FetchResult(page=Page(records=tuple(records), offset=offset))


def cursor_page(records: Iterable[AuditRecord], continuation: str | None) -> FetchResult:
    return FetchResult(page=Page(records=tuple(records), continuation=continuation))


class ScriptedFetcher:
    """Page fetcher that replays a fixed list of results.

    Items may be :class:`FetchResult` or an exception instance to raise.
    Every call is recorded in :attr:`calls` as ``(window, token)``.
    """

    name = "scripted"

    def __init__(self, results: list) -> None:
        self._results = list(results)
        self.calls: list[tuple[Window, object]] = []

    async def fetch(self, window, token, page_size, filter_query=""):
        self.calls.append((window, token))
        if not self._results:
            raise AssertionError(f"Unexpected fetch at token {token!r}")
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def tokens(self) -> list:
        return [token for _, token in self.calls]


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0 + timedelta(hours=1))


@pytest.fixture(autouse=True)
def _reset_auditfeed_logger():
    """Undo setup_logging so caplog sees auditfeed records."""
    yield
    logger = logging.getLogger("auditfeed")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
