"""Log-line record emitter.

Writes each record as a single info log line of ``key:value`` pairs, the
form log shippers pick up from the exporter's output.

Example:
    >>> from auditfeed.emitter.log import format_record
    >>> from auditfeed.models import AuditRecord
    >>> record = AuditRecord(
    ...     id=7,
    ...     created="2024-03-01T10:15:30.123+0000",
    ...     attributes={
    ...         "summary": "User added",
    ...         "changedValues": [
    ...             {"fieldName": "group", "changedFrom": "", "changedTo": "admins"},
    ...         ],
    ...     },
    ... )
    >>> format_record(record)
    'id:7,created:2024-03-01T10:15:30.123+0000,summary:User added,changedValues:[fieldName: group, changedFrom: , changedTo: admins]'
"""

from __future__ import annotations

import logging
from typing import Any

from auditfeed.models.record import AuditRecord


def _format_changed_values(values: Any) -> str:
    if not isinstance(values, list):
        return str(values)
    parts = []
    for value in values:
        if isinstance(value, dict):
            parts.append(
                f"fieldName: {value.get('fieldName', '')}, "
                f"changedFrom: {value.get('changedFrom', '')}, "
                f"changedTo: {value.get('changedTo', '')}"
            )
        else:
            parts.append(str(value))
    return "[" + " ".join(parts) + "]"


def format_record(record: AuditRecord) -> str:
    """Render a record as a ``key:value`` line."""
    fields = [f"id:{record.id}", f"created:{record.created}"]
    for key, value in record.attributes.items():
        if key == "changedValues":
            value = _format_changed_values(value)
        fields.append(f"{key}:{value}")
    return ",".join(fields)


class LogEmitter:
    """Emit records through a logger.

    Attributes:
        logger: The logger instance to use
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        log_level: int = logging.INFO,
    ) -> None:
        """Initialize the emitter.

        Args:
            logger: Logger to use (default: auditfeed.records logger)
            log_level: Level records are logged at
        """
        self._logger = logger or logging.getLogger("auditfeed.records")
        self._log_level = log_level

    def emit(self, record: AuditRecord) -> None:
        self._logger.log(
            self._log_level,
            format_record(record),
            extra={"record_id": record.id},
        )


__all__ = ["LogEmitter", "format_record"]
