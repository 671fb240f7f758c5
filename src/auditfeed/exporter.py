"""Wiring from settings to a ready-to-run driver.

Example:
    >>> from auditfeed.core.config import get_settings
    >>> from auditfeed.exporter import build_fetcher
    >>> settings = get_settings(source="org-events", org_id="o1", api_token="t")
    >>> build_fetcher(settings).name
    'org-events'
"""

from __future__ import annotations

import logging

from auditfeed.core.checkpoint import CheckpointStore, FileCheckpointStore
from auditfeed.core.config import Settings
from auditfeed.driver import PaginationDriver, RunStats
from auditfeed.emitter.base import RecordEmitter
from auditfeed.emitter.log import LogEmitter
from auditfeed.fetcher.base import BaseHttpFetcher
from auditfeed.fetcher.jira import JiraAuditFetcher
from auditfeed.fetcher.org_events import DEFAULT_ADMIN_API, OrgEventsFetcher
from auditfeed.http.backoff import BackoffPolicy
from auditfeed.http.client import HttpClient
from auditfeed.pagination import get_style


def build_fetcher(settings: Settings, client: HttpClient | None = None) -> BaseHttpFetcher:
    """Create the fetcher for ``settings.source``."""
    if settings.source == "jira":
        return JiraAuditFetcher(
            settings.api_endpoint,
            email=settings.api_email,
            api_token=settings.api_token,
            timeout=settings.request_timeout,
            client=client,
        )
    return OrgEventsFetcher(
        settings.org_id,
        api_token=settings.api_token,
        base_url=settings.api_endpoint or DEFAULT_ADMIN_API,
        timeout=settings.request_timeout,
        client=client,
    )


def build_backoff(settings: Settings) -> BackoffPolicy:
    return BackoffPolicy(
        fallback_delay=settings.rate_limit_fallback,
        max_delay=settings.rate_limit_max_delay,
        max_attempts=settings.rate_limit_max_attempts,
        page_delay=settings.sleep_ms / 1000,
    )


def build_driver(
    settings: Settings,
    fetcher: BaseHttpFetcher,
    *,
    store: CheckpointStore | None = None,
    emitter: RecordEmitter | None = None,
    logger: logging.Logger | None = None,
) -> PaginationDriver:
    """Assemble a driver from settings and collaborators."""
    logger = logger or logging.getLogger("auditfeed")
    return PaginationDriver(
        fetcher,
        store or FileCheckpointStore(settings.checkpoint_path, logger=logger.getChild("checkpoint")),
        emitter or LogEmitter(logger.getChild("records")),
        style=get_style(settings.pagination_style),
        backoff=build_backoff(settings),
        page_size=settings.page_size,
        filter_query=settings.query_filter,
        lookback=settings.lookback,
        logger=logger.getChild("driver"),
    )


async def run_export(
    settings: Settings,
    *,
    client: HttpClient | None = None,
    store: CheckpointStore | None = None,
    emitter: RecordEmitter | None = None,
    logger: logging.Logger | None = None,
) -> RunStats:
    """Run one incremental export as configured.

    Raises:
        ConfigurationError: If credentials for the source are missing.
        FetchError: If the remote API fails.
        RateLimitExhaustedError: If throttling outlasts the attempt limit.
    """
    settings.validate_credentials()
    async with build_fetcher(settings, client=client) as fetcher:
        driver = build_driver(settings, fetcher, store=store, emitter=emitter, logger=logger)
        return await driver.run(from_override=settings.from_date)


__all__ = [
    "build_backoff",
    "build_driver",
    "build_fetcher",
    "run_export",
]
