"""Logging setup shared by the entrypoints.

Both `python -m app.main` and `uvicorn app.asgi:app` call into this module so
log format and noise suppression stay identical.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request client logs that drown out pipeline output
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


class SuppressHealthCheckAccessLog(logging.Filter):
    """Drop Uvicorn access records for ``GET /health``."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (filter)
        # Uvicorn access args: (client_addr, method, full_path, http_version, status_code)
        args: Any = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            path = str(args[2])
            return not (path == "/health" or path.startswith("/health?"))
        message = record.getMessage()
        return '"GET /health ' not in message and '"HEAD /health ' not in message


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def install_uvicorn_access_log_filters() -> None:
    """Attach the health-check filter to ``uvicorn.access``; idempotent."""
    access_logger = logging.getLogger("uvicorn.access")
    if any(isinstance(f, SuppressHealthCheckAccessLog) for f in access_logger.filters):
        return
    access_logger.addFilter(SuppressHealthCheckAccessLog())
