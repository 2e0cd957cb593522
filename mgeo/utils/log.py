"""
Logging utilities for the mgeo backend.

Provides unified structured logging:
- pretty console output via Rich
- structured (JSON) file output to `serve.log` when running `mgeo serve`
"""

import logging
import os
import sys
import json
from pathlib import Path

from rich.logging import RichHandler

LOG_LEVEL_ENV = "MGEO_LOG_LEVEL"


class JSONFormatter(logging.Formatter):
    """
    Formatter that serializes log records to JSON.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level":     record.levelname,
            "logger":    record.name,
            "thread":    record.threadName,
            "message":   record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Return a configured logger for the given name.

    Attaches:
    - a RichHandler for console output
    - when the command is 'serve', a FileHandler writing JSON logs to {cwd}/serve.log

    Parameters
    ----------
    name
        Logger name (typically __name__).
    level
        Log level (int or string). Falls back to $MGEO_LOG_LEVEL, then INFO.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        # Console via Rich
        console_handler = RichHandler(rich_tracebacks=True)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

        # File output for `mgeo serve`, as structured JSON
        if len(sys.argv) > 1 and sys.argv[1] == "serve":
            log_path = Path.cwd() / f"{sys.argv[1]}.log"
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)

    return logger
