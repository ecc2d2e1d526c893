"""
Logging Configuration — Process-wide logging setup.

- JSON lines for cron/CI runs (machine-readable)
- Compact text for interactive runs

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from mirrorsync.logging_config import setup_logging

    setup_logging()  # Call once at startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Extra attributes that callers attach via ``extra={...}``.
CONTEXT_FIELDS = ("source", "repo", "operation")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record:
    {"ts": "...", "level": "...", "logger": "...", "message": "...", "repo": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class HumanFormatter(logging.Formatter):
    """
    Text formatter:
    2026-10-19 12:34:56 ERROR   [engine        ] Failed update [...]
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Full timestamp: batches usually run from cron and land in files
        time_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        level = record.levelname
        if sys.stderr.isatty():
            level = f"{self.COLORS.get(level, '')}{level:7}{self.RESET}"
        else:
            level = f"{level:7}"

        module = record.name.split(".")[-1][:14]
        line = f"{time_str} {level} [{module:14}] {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: Optional[str] = None,
    format_type: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        format_type: "json" or "text". Defaults to LOG_FORMAT or text.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT", "text")).lower()

    numeric_level = getattr(logging, log_level, logging.INFO)

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}"
    )
