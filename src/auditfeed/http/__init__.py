"""auditfeed HTTP utilities.

Provides the HTTP client used by the page fetchers and the rate-limit
backoff policy applied by the pagination driver.

Example:
    >>> from auditfeed.http import BackoffPolicy, HttpClient
    >>>
    >>> policy = BackoffPolicy(fallback_delay=50)
    >>> async with HttpClient("https://example.atlassian.net") as client:  # doctest: +SKIP
    ...     response = await client.get("/rest/api/3/auditing/record")
"""

from auditfeed.http.backoff import BackoffPolicy
from auditfeed.http.client import HttpClient, parse_retry_after

__all__ = [
    "BackoffPolicy",
    "HttpClient",
    "parse_retry_after",
]
