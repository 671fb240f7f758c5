"""Atlassian organization events fetcher (cursor pagination).

Calls ``GET /admin/v1/orgs/{org_id}/events``. The next page is addressed by
the ``cursor`` query parameter of ``links.next``; the last page has no
next link.

Example:
    >>> from auditfeed.fetcher.org_events import next_cursor
    >>> next_cursor("https://api.atlassian.com/admin/v1/orgs/o1/events?cursor=abc%3D")
    'abc='
    >>> next_cursor(None) is None
    True
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import parse_qs, urlparse

from auditfeed.core.exceptions import FetchError
from auditfeed.fetcher.base import BaseHttpFetcher
from auditfeed.http.client import HttpClient
from auditfeed.models.page import Page, Token, Window
from auditfeed.models.record import AuditRecord

DEFAULT_ADMIN_API = "https://api.atlassian.com"


def next_cursor(link: str | None) -> str | None:
    """Extract the cursor from a next link."""
    if not link:
        return None
    values = parse_qs(urlparse(link).query).get("cursor")
    if not values or not values[0]:
        return None
    return values[0]


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class OrgEventsFetcher(BaseHttpFetcher):
    """Fetch pages of organization audit events.

    The events API sizes its own pages, so ``page_size`` is not sent.

    Args:
        org_id: Organization identifier.
        api_token: Organization admin API key (bearer token).
        base_url: Admin API base URL.
        timeout: Request timeout in seconds.
        client: Pre-built client (tests inject one with a mock transport).
    """

    def __init__(
        self,
        org_id: str,
        *,
        api_token: str = "",
        base_url: str = DEFAULT_ADMIN_API,
        timeout: float = 30.0,
        client: HttpClient | None = None,
    ) -> None:
        client = client or HttpClient(
            base_url.rstrip("/"),
            bearer_token=api_token,
            timeout=timeout,
        )
        super().__init__("org-events", client)
        self.org_id = org_id

    def _build_request(
        self,
        window: Window,
        token: Token,
        page_size: int,
        filter_query: str,
    ) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {
            "from": _epoch_ms(window.start),
            "to": _epoch_ms(window.end),
        }
        if filter_query:
            params["q"] = filter_query
        if token:
            params["cursor"] = token
        return f"/admin/v1/orgs/{self.org_id}/events", params

    def _parse_page(self, payload: dict[str, Any]) -> Page:
        items = payload.get("data") or []
        if not isinstance(items, list):
            raise FetchError(
                f"Expected 'data' list, got {type(items).__name__}",
                source=self.name,
            )

        records = []
        for item in items:
            if not isinstance(item, dict) or item.get("id") is None:
                raise FetchError(f"Malformed event: {item!r}", source=self.name)
            attributes = item.get("attributes") or {}
            if not isinstance(attributes, dict):
                raise FetchError(f"Malformed event attributes: {item!r}", source=self.name)
            attributes = dict(attributes)
            created = attributes.pop("time", "")
            records.append(
                AuditRecord(
                    id=item["id"],
                    created=str(created or ""),
                    attributes=attributes,
                )
            )

        links = payload.get("links") or {}
        return Page(
            records=tuple(records),
            continuation=next_cursor(links.get("next") if isinstance(links, dict) else None),
        )


__all__ = [
    "DEFAULT_ADMIN_API",
    "OrgEventsFetcher",
    "next_cursor",
]
