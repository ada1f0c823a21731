"""Logging setup for command-line use.

The library itself only emits records through module loggers under the
"eventstore" namespace. Applications (and the CLI) call setup_logging() to
attach a handler:
- text output for humans
- JSON lines for log ingestion
"""

from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass

# ---------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Format log records as human-readable text."""

    def format(self, record: logging.LogRecord) -> str:
        s = f"{record.levelname} {record.name} {record.getMessage()}"
        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)
        return s


# ---------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingOptions:
    """Configure logging behavior for the CLI."""

    level: str = "INFO"
    json_logs: bool = False


def setup_logging(options: LoggingOptions | None = None, stream=None) -> logging.Logger:
    """
    Configure the "eventstore" logger.

    Replaces handlers from a previous call instead of stacking them. Logs go
    to stderr by default so stdout stays free for command output.
    """
    options = options or LoggingOptions()
    logger = logging.getLogger("eventstore")
    logger.setLevel(getattr(logging, options.level.upper(), logging.INFO))
    logger.propagate = False

    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(logger.level)
    handler.setFormatter(JsonFormatter() if options.json_logs else TextFormatter())
    logger.addHandler(handler)
    return logger
