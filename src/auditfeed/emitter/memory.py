"""In-memory record emitter for testing."""

from __future__ import annotations

from auditfeed.models.record import AuditRecord


class MemoryEmitter:
    """Collect emitted records in a list.

    Example:
        >>> from auditfeed.emitter.memory import MemoryEmitter
        >>> from auditfeed.models import AuditRecord
        >>> emitter = MemoryEmitter()
        >>> emitter.emit(AuditRecord(id="1"))
        >>> emitter.ids
        ['1']
    """

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    def emit(self, record: AuditRecord) -> None:
        self.records.append(record)

    @property
    def ids(self) -> list[str]:
        """Identifiers of emitted records, in emission order."""
        return [r.id for r in self.records]

    def clear(self) -> None:
        self.records.clear()


__all__ = ["MemoryEmitter"]
