"""Core configuration and utilities."""

from auditfeed.core.checkpoint import (
    DEFAULT_LOOKBACK,
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

__all__ = [
    # Checkpointing
    "DEFAULT_LOOKBACK",
    "Checkpoint",
    "CheckpointStore",
    "FileCheckpointStore",
    "MemoryCheckpointStore",
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
