"""JSON-lines record emitter."""

from __future__ import annotations

import json
import sys
from typing import TextIO

from auditfeed.models.record import AuditRecord


class JsonLinesEmitter:
    """Write one JSON object per record to a text stream.

    Example:
        >>> import io
        >>> from auditfeed.emitter.jsonl import JsonLinesEmitter
        >>> from auditfeed.models import AuditRecord
        >>> buf = io.StringIO()
        >>> JsonLinesEmitter(buf).emit(AuditRecord(id="1", created="2024-01-01T00:00:00Z"))
        >>> buf.getvalue()
        '{"id": "1", "created": "2024-01-01T00:00:00Z", "attributes": {}}\\n'
    """

    def __init__(self, stream: TextIO | None = None, *, flush: bool = True) -> None:
        self._stream = stream or sys.stdout
        self._flush = flush

    def emit(self, record: AuditRecord) -> None:
        self._stream.write(json.dumps(record.model_dump(), default=str) + "\n")
        if self._flush:
            self._stream.flush()


__all__ = ["JsonLinesEmitter"]
