# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging for the Laravel symbol engine.

Two sinks:
- a JSON-lines file, one object per record
- an optional human-readable stream on stderr (stdout belongs to the stdio
  MCP transport and is never written to)

Extraction and warm-up timings carry structured fields, passed as
`extra=symbol_fields(category="route", symbols=12)`. The JSON formatter
merges them into the record object.
"""

import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_DIRNAME = ".laravel_symbols_logs"

# Third-party loggers that flood DEBUG output (watchdog reports every inotify event)
NOISY_LOGGERS = ("watchdog", "asyncio")


def symbol_fields(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """Wrap structured fields for the `extra` argument of a logging call."""
    return {"extra_fields": fields}


class StructuredFormatter(logging.Formatter):
    """JSON formatter: one object per record.

    Records emitted off the main thread (route warm-up, file watcher) are
    tagged with the thread name.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.threadName and record.threadName != "MainThread":
            log_data["thread"] = record.threadName

        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            log_data.update(fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def log_file_for(log_dir: Path, day: Optional[date] = None) -> Path:
    """Daily log file inside a log directory (UTC date)."""
    day = day or datetime.now(timezone.utc).date()
    return log_dir / f"laravel_symbols_{day.strftime('%Y%m%d')}.log"


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
) -> Path:
    """Route all logging to a JSON file and optionally to stderr.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        log_dir: Directory for log files. If None, uses .laravel_symbols_logs/
            in the current directory.
        log_level: Level for the root logger and both handlers.
        console_output: Whether to also log human-readable lines to stderr.

    Returns:
        Path of the JSON log file.
    """
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    log_file = log_file_for(log_dir)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger(__name__).info(
        f"Logging initialized in {log_dir}", extra=symbol_fields(log_file=str(log_file))
    )
    return log_file
