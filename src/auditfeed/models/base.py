"""Base model shared by auditfeed's pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AuditFeedModel(BaseModel):
    """Base model with standard configuration.

    Models are frozen: records are immutable once fetched.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )
