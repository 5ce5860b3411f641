"""
Name: Structured Logger Configuration

Responsibilities:
  - Configure JSON-structured logging
  - Automatically include run context (run_id, fragment_id, model)
  - Include stack traces for exceptions

Collaborators:
  - context.py: Run-scoped context vars
  - crosscutting/config.py: log level and format
  - Python logging module (stdlib)

Constraints:
  - JSON format for log aggregation compatibility
  - Never log secrets (API keys, tokens)

Notes:
  - Import as: from fragdelegate.crosscutting.logger import logger
  - LOG_JSON=0 switches to a plain "LEVEL message" format for terminals
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from ..context import get_context_dict
from .config import get_settings

# R: LogRecord attributes that are not user-supplied extras
_INTERNAL_KEYS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


class JSONFormatter(logging.Formatter):
    """
    R: Format logs as JSON with automatic context enrichment.

    Includes:
      - timestamp (ISO 8601)
      - level, message, logger
      - module, function, line
      - run_id, fragment_id, model (from context)
      - exception stack trace (if present)
      - extra fields from log call
    """

    # R: Fields that should never be logged (security)
    SENSITIVE_KEYS = {"password", "api_key", "secret", "token", "authorization"}

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # R: Add run context
        log_obj.update(get_context_dict())

        for key, value in record.__dict__.items():
            if key in _INTERNAL_KEYS or key.lower() in self.SENSITIVE_KEYS:
                continue
            log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def setup_logger(name: str = "fragdelegate") -> logging.Logger:
    """
    R: Configure and return structured logger.

    Level and format come from Settings when they can be loaded; invalid
    settings never prevent logging from working.
    """
    log = logging.getLogger(name)

    level = "INFO"
    use_json = True
    try:
        settings = get_settings()
        level = (settings.log_level or "INFO").upper()
        use_json = settings.log_json
    except ValidationError:
        pass

    log.setLevel(getattr(logging, level, logging.INFO))

    # R: Avoid duplicate handlers on reimport
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            JSONFormatter()
            if use_json
            else logging.Formatter("%(levelname)s %(message)s")
        )
        log.addHandler(handler)

    return log


# R: Global logger instance
logger = setup_logger()
