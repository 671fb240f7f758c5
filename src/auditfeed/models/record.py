"""Audit record model - the unit exported by auditfeed.

Example:
    >>> from auditfeed.models.record import AuditRecord
    >>> record = AuditRecord(
    ...     id=42,
    ...     created="2024-03-01T10:15:30.123+0000",
    ...     attributes={"summary": "User created"},
    ... )
    >>> record.id  # Identifiers are normalized to strings
    '42'
    >>> record.created_at().isoformat()
    '2024-03-01T10:15:30.123000+00:00'
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from auditfeed.models.base import AuditFeedModel
from auditfeed.utils.timestamps import parse_timestamp


class AuditRecord(AuditFeedModel):
    """A single audit/event record as returned by the remote API.

    ``created`` is kept exactly as the API sent it; a malformed value must
    not prevent the record from being exported, so parsing is deferred to
    :meth:`created_at`.
    """

    id: str = Field(..., min_length=1, description="Identifier assigned by the source")
    created: str = Field(default="", description="Creation timestamp as sent by the API")
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Remaining record fields",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Accept numeric identifiers."""
        if isinstance(v, int):
            return str(v)
        return v

    def created_at(self) -> datetime:
        """Parse the creation timestamp.

        Raises:
            ValueError: If ``created`` is missing or malformed.
        """
        return parse_timestamp(self.created)
