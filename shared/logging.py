"""
Structured logging.

JSON log records with the active job ID attached from context.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from shared.config import settings

ROOT_LOGGER_NAME = "storyreel"

_job_id: ContextVar[Optional[str]] = ContextVar("job_id", default=None)

# Attributes every LogRecord has; anything else came in through `extra`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        job_id = _job_id.get()
        if job_id is not None:
            payload["job_id"] = job_id

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.setLevel(getattr(logging, settings.log_level, logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a namespaced logger.

    Args:
        name: Component name (module path or short name)

    Returns:
        Logger under the storyreel namespace
    """
    _configure_root()
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_job_id(job_id: Optional[str]) -> None:
    """Attach a job ID to every record logged from the current context."""
    _job_id.set(str(job_id) if job_id is not None else None)


def get_job_id() -> Optional[str]:
    """Return the job ID bound to the current context, if any."""
    return _job_id.get()
