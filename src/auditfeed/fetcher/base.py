"""Page fetcher protocol and shared HTTP fetcher base.

A page fetcher turns ``(window, token)`` into one page of records. It must
report throttling as a :class:`FetchResult` with status 429 rather than
raising, and raise :class:`FetchError` for everything else that fails.

Example:
    >>> from auditfeed.fetcher.base import PageFetcher
    >>> hasattr(PageFetcher, "fetch")
    True
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from auditfeed.core.exceptions import FetchError
from auditfeed.http.client import HttpClient, parse_retry_after
from auditfeed.models.page import HTTP_TOO_MANY_REQUESTS, FetchResult, Page, Token, Window


@runtime_checkable
class PageFetcher(Protocol):
    """Protocol for fetching one page of records."""

    @property
    def name(self) -> str:
        """Fetcher name, used in logs and errors."""
        ...

    async def fetch(
        self,
        window: Window,
        token: Token,
        page_size: int,
        filter_query: str = "",
    ) -> FetchResult:
        """Fetch the page at ``token`` for ``window``.

        Raises:
            FetchError: On any failure other than throttling.
        """
        ...


class BaseHttpFetcher(ABC):
    """Base class for fetchers backed by :class:`HttpClient`.

    Subclasses build the request and parse the payload; status handling
    is shared.
    """

    def __init__(self, name: str, client: HttpClient) -> None:
        self._name = name
        self._client = client

    @property
    def name(self) -> str:
        return self._name

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    async def __aenter__(self) -> BaseHttpFetcher:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch(
        self,
        window: Window,
        token: Token,
        page_size: int,
        filter_query: str = "",
    ) -> FetchResult:
        url, params = self._build_request(window, token, page_size, filter_query)
        try:
            response = await self._client.get(url, params=params)
        except FetchError as e:
            e.source = self._name
            raise

        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            return FetchResult.throttled(parse_retry_after(response.headers.get("Retry-After")))

        if response.status_code >= 400:
            raise FetchError(
                f"HTTP {response.status_code} from {self._name}: {response.text[:200]}",
                status=response.status_code,
                source=self._name,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(
                f"Invalid JSON from {self._name}: {e}",
                status=response.status_code,
                source=self._name,
                cause=e,
            ) from e

        if not isinstance(payload, dict):
            raise FetchError(
                f"Expected JSON object from {self._name}, got {type(payload).__name__}",
                status=response.status_code,
                source=self._name,
            )

        try:
            page = self._parse_page(payload)
        except (ValidationError, TypeError, ValueError) as e:
            raise FetchError(
                f"Malformed payload from {self._name}: {e}",
                status=response.status_code,
                source=self._name,
                cause=e,
            ) from e

        return FetchResult(page=page, status=response.status_code)

    @abstractmethod
    def _build_request(
        self,
        window: Window,
        token: Token,
        page_size: int,
        filter_query: str,
    ) -> tuple[str, dict[str, Any]]:
        """Return the request path and query parameters."""
        ...

    @abstractmethod
    def _parse_page(self, payload: dict[str, Any]) -> Page:
        """Convert a decoded response body into a :class:`Page`.

        Raises:
            FetchError: If the payload does not have the expected shape.
        """
        ...
