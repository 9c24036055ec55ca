"""Logging setup.

Modules log through ``logging.getLogger(__name__)``; this only wires the root
handler and level from settings.
"""

import logging

from cadence.core.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once, honouring ``LOG_LEVEL``."""
    resolved = (level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    root.setLevel(resolved)

    # SQL echo is controlled by DEBUG on the engine; keep the logger quiet otherwise.
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
