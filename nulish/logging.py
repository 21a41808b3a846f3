from __future__ import annotations

"""Application-wide logging configuration.

Every record is rendered as one JSON line with timestamp (UTC ISO8601),
level, logger, service, environment and message. Structured extras passed
via ``logger.info(msg, extra={...})`` are merged into the object, which is
how the tag engine reports note ids and tag counts.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from nulish.core.settings import get_settings

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

# Chatty third-party loggers kept at WARNING unless running at DEBUG
_QUIET = ("sqlalchemy.engine", "httpx", "httpcore", "uvicorn.access")


class _JsonFormatter(logging.Formatter):
    """One-line JSON log formatter with stable keys and UTC timestamps."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        settings = get_settings()
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        base: Dict[str, Any] = {
            "timestamp": dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "service": settings.service_name,
            "environment": settings.environment,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED or key in base:
                continue
            base[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            base["error"] = {
                "class": record.exc_info[0].__name__,
                "message": str(record.exc_info[1])[:500],
            }
        return json.dumps(base, ensure_ascii=False, default=repr)


def setup_logging(level: str | None = None) -> None:
    """Configure root logger to output one-line JSON logs."""

    settings = get_settings()
    name = (level or settings.log_level).upper()
    numeric = getattr(logging, name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric)

    for noisy in _QUIET:
        logging.getLogger(noisy).setLevel(max(numeric, logging.WARNING))


__all__ = ["setup_logging"]
