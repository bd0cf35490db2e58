"""Process-wide logging configuration."""

import logging
import sys

from solarify.core.config import get_settings

# HTTP client chatter from Firestore and weather calls
_QUIET_LOGGERS = ("httpx", "httpcore", "google.auth", "urllib3")


def setup_logging() -> None:
    """Log to stdout at DEBUG when settings.debug, else INFO.

    Every engine and repository logs through logging.getLogger(__name__),
    so this is the only place handlers are attached.
    """
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger(__name__).debug(
        "Logging configured (environment=%s, backend=%s)", settings.environment, settings.database_backend
    )
