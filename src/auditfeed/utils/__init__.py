"""auditfeed utilities.

Timestamp helpers shared by the fetchers, the advancer and the checkpoint store.
"""

from auditfeed.utils.timestamps import (
    format_timestamp,
    parse_timestamp,
    truncate_ms,
    utcnow,
)

__all__ = [
    "format_timestamp",
    "parse_timestamp",
    "truncate_ms",
    "utcnow",
]
