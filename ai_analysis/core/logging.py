"""Centralized logging configuration.

Pipeline modules attach request context through ``extra=`` (result type,
session id, caller key, cache fingerprint); the JSON formatter lifts those
attributes into top-level fields so log lines can be filtered per analysis.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from ai_analysis.core.config import settings

CONTEXT_FIELDS = ("result_type", "session_id", "caller_key", "fingerprint", "attempt")

_QUIET_LOGGERS = ("httpx", "httpcore", "redis")

_PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Install a single stdout handler on the root logger.

    ``level`` and ``json_output`` default to ``LOG_LEVEL`` / ``LOG_JSON``.
    """
    level_name = (level or settings.log_level).upper()
    numeric = getattr(logging, level_name, logging.INFO)
    use_json = settings.log_json if json_output is None else json_output

    root = logging.getLogger()
    root.setLevel(numeric)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric)
    handler.setFormatter(JSONFormatter() if use_json else logging.Formatter(_PLAIN_FORMAT, "%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
