# runpod_flow/logging_config.py
"""
Stderr-only JSON logging configuration.

stdout carries CLI results, so ALL logging goes to stderr.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


# Record attributes (set via ``extra=``) copied into each JSON line
_CONTEXT_FIELDS = {
    "model_id": "model",
    "job_id": "job",
    "job_status": "status",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with job context when the call site supplies it."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr, key in _CONTEXT_FIELDS.items():
            value = getattr(record, attr, None)
            if value is not None:
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(verbosity: str = "normal") -> None:
    """
    Configure logging to output JSON to stderr only.

    Clears existing handlers to prevent stdout pollution.

    Args:
        verbosity: quiet (WARNING), normal (INFO) or verbose (DEBUG)
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_LEVELS.get(verbosity, logging.INFO))

    # httpx logs every request URL at INFO
    for logger_name in ["httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
