"""Record emitter protocol.

Example:
    >>> from auditfeed.emitter.base import RecordEmitter
    >>> hasattr(RecordEmitter, "emit")
    True
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from auditfeed.models.record import AuditRecord


@runtime_checkable
class RecordEmitter(Protocol):
    """Sink receiving each in-range record in fetch order.

    Emitters are best effort: the driver logs and skips a failing emit
    instead of aborting the run.
    """

    def emit(self, record: AuditRecord) -> None:
        """Export one record."""
        ...
