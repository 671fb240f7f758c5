"""HTTP client used by the page fetchers.

Thin async wrapper around ``httpx.AsyncClient``. It does not retry: a 429
is handed back to the caller so the pagination driver can apply its own
backoff, and transport failures are raised as :class:`FetchError`.

Example:
    >>> from auditfeed.http import HttpClient
    >>>
    >>> async with HttpClient("https://example.atlassian.net", auth=("me", "token")) as client:  # doctest: +SKIP
    ...     response = await client.get("/rest/api/3/auditing/record", params={"limit": 10})
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from auditfeed.core.exceptions import FetchError


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> int | None:
    """Parse a ``Retry-After`` header value into whole seconds.

    Accepts either delta-seconds or an HTTP date.

    Example:
        >>> from auditfeed.http.client import parse_retry_after
        >>> parse_retry_after("5")
        5
        >>> parse_retry_after(None) is None
        True
        >>> parse_retry_after("soon") is None
        True
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    return max(0, int((when - now).total_seconds()))


class HttpClient:
    """Async HTTP client with shared auth, headers and timeout."""

    def __init__(
        self,
        base_url: str = "",
        *,
        auth: tuple[str, str] | None = None,
        user_agent: str = "auditfeed/1.0",
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        bearer_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP client.

        Args:
            base_url: Base URL for relative requests
            auth: Basic auth ``(user, token)`` pair
            user_agent: User-Agent header
            timeout: Default request timeout
            headers: Additional default headers
            bearer_token: Sent as ``Authorization: Bearer ...`` when set
            transport: Custom transport (used by tests)
        """
        self._base_url = base_url
        self._auth = auth
        self._user_agent = user_agent
        self._timeout = timeout
        self._extra_headers = headers or {}
        self._bearer_token = bearer_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Default headers for requests."""
        headers = {
            "User-Agent": self._user_agent,
            "Accept": "application/json",
            **self._extra_headers,
        }
        if self._bearer_token:
            headers["Authorization"] = f"Bearer {self._bearer_token}"
        return headers

    def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the underlying client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self.headers,
                auth=self._auth,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request.

        Any status code is returned to the caller.

        Raises:
            FetchError: On timeouts and connection failures.
        """
        client = self._ensure_client()
        try:
            return await client.get(url, **kwargs)
        except httpx.TimeoutException as e:
            raise FetchError(f"Request timeout: {e}", cause=e) from e
        except httpx.RequestError as e:
            raise FetchError(f"Request failed: {e}", cause=e) from e


__all__ = [
    "HttpClient",
    "parse_retry_after",
]
