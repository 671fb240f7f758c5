"""Models for auditfeed."""

from auditfeed.models.base import AuditFeedModel
from auditfeed.models.page import (
    HTTP_TOO_MANY_REQUESTS,
    FetchResult,
    Page,
    RateLimitSignal,
    Token,
    Window,
)
from auditfeed.models.record import AuditRecord

__all__ = [
    "AuditFeedModel",
    "AuditRecord",
    "FetchResult",
    "HTTP_TOO_MANY_REQUESTS",
    "Page",
    "RateLimitSignal",
    "Token",
    "Window",
]
