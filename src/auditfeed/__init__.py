"""
auditfeed - Incremental Audit Log Exporter.

auditfeed pages through a remote audit-log API, emits every record created
since the last successful run and persists a checkpoint after each page so
an interrupted export resumes where it stopped.

Key Features:
- Offset (Jira audit records) and cursor (organization events) pagination
- Watermark checkpoint with atomic file persistence
- Rate-limit handling that honors Retry-After
- Pluggable emitters (log lines, JSON lines, memory)

Quick Start:
    >>> from auditfeed import PaginationDriver, MemoryCheckpointStore, MemoryEmitter
    >>> from auditfeed import JiraAuditFetcher, OffsetStyle
    >>> fetcher = JiraAuditFetcher("https://example.atlassian.net", email="a@b.c", api_token="t")
    >>> driver = PaginationDriver(
    ...     fetcher, MemoryCheckpointStore(), MemoryEmitter(), style=OffsetStyle()
    ... )

Architecture:
    Fetchers: JiraAuditFetcher, OrgEventsFetcher
    Checkpoint stores: FileCheckpointStore, MemoryCheckpointStore
    Emitters: LogEmitter, JsonLinesEmitter, MemoryEmitter
"""

from auditfeed.advancer import CheckpointAdvancer, PageOutcome
from auditfeed.core.checkpoint import (
    Checkpoint,
    CheckpointStore,
    FileCheckpointStore,
    MemoryCheckpointStore,
)
from auditfeed.core.config import Settings, get_settings
from auditfeed.core.exceptions import (
    AuditFeedError,
    CheckpointError,
    ConfigurationError,
    FetchError,
    RateLimitExhaustedError,
)
from auditfeed.core.logging import setup_logging
from auditfeed.driver import PaginationDriver, RunStats
from auditfeed.emitter import (
    JsonLinesEmitter,
    LogEmitter,
    MemoryEmitter,
    RecordEmitter,
)
from auditfeed.exporter import run_export
from auditfeed.fetcher import JiraAuditFetcher, OrgEventsFetcher, PageFetcher
from auditfeed.http import BackoffPolicy, HttpClient
from auditfeed.models import AuditRecord, FetchResult, Page, RateLimitSignal, Window
from auditfeed.pagination import CursorStyle, OffsetStyle, PaginationStyle, get_style

__version__ = "0.1.0"

__all__ = [
    # Models
    "AuditRecord",
    "FetchResult",
    "Page",
    "RateLimitSignal",
    "Window",
    # Checkpointing
    "Checkpoint",
    "CheckpointStore",
    "FileCheckpointStore",
    "MemoryCheckpointStore",
    # Engine
    "CheckpointAdvancer",
    "PageOutcome",
    "PaginationDriver",
    "RunStats",
    "run_export",
    # Pagination
    "CursorStyle",
    "OffsetStyle",
    "PaginationStyle",
    "get_style",
    # Fetchers
    "JiraAuditFetcher",
    "OrgEventsFetcher",
    "PageFetcher",
    # HTTP
    "BackoffPolicy",
    "HttpClient",
    # Emitters
    "JsonLinesEmitter",
    "LogEmitter",
    "MemoryEmitter",
    "RecordEmitter",
    # Configuration
    "Settings",
    "get_settings",
    "setup_logging",
    # Errors
    "AuditFeedError",
    "CheckpointError",
    "ConfigurationError",
    "FetchError",
    "RateLimitExhaustedError",
]
