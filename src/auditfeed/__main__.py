"""Allow ``python -m auditfeed``."""

from auditfeed.cli import app

app()
