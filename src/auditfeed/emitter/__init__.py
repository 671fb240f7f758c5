"""Record emitters.

Example:
    >>> from auditfeed.emitter import LogEmitter, RecordEmitter
    >>> isinstance(LogEmitter(), RecordEmitter)
    True
"""

from auditfeed.emitter.base import RecordEmitter
from auditfeed.emitter.jsonl import JsonLinesEmitter
from auditfeed.emitter.log import LogEmitter, format_record
from auditfeed.emitter.memory import MemoryEmitter

__all__ = [
    "JsonLinesEmitter",
    "LogEmitter",
    "MemoryEmitter",
    "RecordEmitter",
    "format_record",
]
