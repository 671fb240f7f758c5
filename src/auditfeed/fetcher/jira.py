"""Jira audit-records fetcher (offset pagination).

Calls ``GET /rest/api/3/auditing/record`` with ``from``/``to``/``filter``
and ``offset``/``limit``. Records come back newest first.

Example:
    >>> from auditfeed.fetcher.jira import JiraAuditFetcher
    >>> fetcher = JiraAuditFetcher(
    ...     "https://example.atlassian.net",
    ...     email="me@example.com",
    ...     api_token="secret",
    ... )
    >>> fetcher.name
    'jira'
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from auditfeed.core.exceptions import FetchError
from auditfeed.fetcher.base import BaseHttpFetcher
from auditfeed.http.client import HttpClient
from auditfeed.models.page import Page, Token, Window
from auditfeed.models.record import AuditRecord

AUDIT_RECORDS_PATH = "/rest/api/3/auditing/record"


def format_jira_time(value: datetime) -> str:
    """Format a datetime the way Jira reports audit timestamps.

    Example:
        >>> from datetime import datetime, UTC
        >>> format_jira_time(datetime(2024, 3, 1, 10, 15, 30, 123000, tzinfo=UTC))
        '2024-03-01T10:15:30.123+0000'
    """
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}" + value.strftime("%z")


class JiraAuditFetcher(BaseHttpFetcher):
    """Fetch pages of Jira audit records.

    Args:
        endpoint: Jira site URL, e.g. ``https://example.atlassian.net``.
        email: Account email for basic auth.
        api_token: API token for basic auth.
        timeout: Request timeout in seconds.
        client: Pre-built client (tests inject one with a mock transport).
    """

    def __init__(
        self,
        endpoint: str,
        *,
        email: str = "",
        api_token: str = "",
        timeout: float = 30.0,
        client: HttpClient | None = None,
    ) -> None:
        client = client or HttpClient(
            endpoint.rstrip("/"),
            auth=(email, api_token),
            timeout=timeout,
        )
        super().__init__("jira", client)

    def _build_request(
        self,
        window: Window,
        token: Token,
        page_size: int,
        filter_query: str,
    ) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {
            "from": format_jira_time(window.start),
            "to": format_jira_time(window.end),
            "offset": int(token or 0),
            "limit": page_size,
        }
        if filter_query:
            params["filter"] = filter_query
        return AUDIT_RECORDS_PATH, params

    def _parse_page(self, payload: dict[str, Any]) -> Page:
        items = payload.get("records") or []
        if not isinstance(items, list):
            raise FetchError(
                f"Expected 'records' list, got {type(items).__name__}",
                source=self.name,
            )

        records = []
        for item in items:
            if not isinstance(item, dict) or item.get("id") is None:
                raise FetchError(f"Malformed audit record: {item!r}", source=self.name)
            records.append(
                AuditRecord(
                    id=item["id"],
                    created=str(item.get("created") or ""),
                    attributes={k: v for k, v in item.items() if k not in ("id", "created")},
                )
            )

        offset = payload.get("offset")
        return Page(
            records=tuple(records),
            offset=offset if isinstance(offset, int) else None,
        )


__all__ = [
    "AUDIT_RECORDS_PATH",
    "JiraAuditFetcher",
    "format_jira_time",
]
