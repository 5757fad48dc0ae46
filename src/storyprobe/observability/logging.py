"""Structured logging for storyprobe.

Events are structlog key/value records routed through the standard library:
- the console (stderr, rich) shows WARNING and up, more with ``-v``/``-vv``
- ``--log PATH`` appends every event, DEBUG included, to PATH as JSON lines
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

_configured = False
_file_handler: logging.FileHandler | None = None
_log_path: Path | None = None

_CONSOLE_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def console_level(verbosity: int) -> int:
    """Map the ``-v`` count to a console log level (2+ is DEBUG)."""
    return _CONSOLE_LEVELS.get(verbosity, logging.DEBUG)


def record_to_entry(record: logging.LogRecord) -> dict[str, Any]:
    """Flatten a log record into one JSON-ready dict.

    A structlog event dict arrives as ``record.msg``; its ``event`` becomes
    ``message`` and its other keys are copied alongside.
    """
    entry: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
    }
    if isinstance(record.msg, dict):
        fields = {k: v for k, v in record.msg.items() if k not in ("level", "timestamp")}
        entry["message"] = fields.pop("event", str(record.msg))
        entry.update(fields)
    else:
        entry["message"] = record.getMessage()
    return entry


class JSONLFileHandler(logging.FileHandler):
    """Append each record to the log file as one JSON object per line."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.stream:
                self.stream.write(json.dumps(record_to_entry(record), default=str) + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(verbosity: int = 0, log_file: Path | None = None) -> None:
    """Configure console and optional JSONL file logging.

    Safe to call again: a previously opened log file is closed first.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_file: If given, every event is appended to this file as JSON
            lines. Parent directories are created.
    """
    global _configured

    close_file_logging()

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            level=console_level(verbosity),
            show_time=verbosity >= 1,
            show_path=False,
            rich_tracebacks=True,
        )
    ]
    if log_file is not None:
        handlers.append(_open_file_handler(log_file))

    root_level = logging.DEBUG if (verbosity > 0 or log_file is not None) else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )

    _configured = True


def _open_file_handler(log_file: Path) -> JSONLFileHandler:
    global _file_handler, _log_path

    log_file.parent.mkdir(parents=True, exist_ok=True)
    _file_handler = JSONLFileHandler(str(log_file), mode="a", encoding="utf-8")
    _file_handler.setLevel(logging.DEBUG)
    _log_path = log_file
    return _file_handler


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a structured logger, configuring defaults on first use.

    Args:
        name: Logger name (typically __name__).
    """
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def get_log_path() -> Path | None:
    """Return the JSONL log file, or None when file logging is off."""
    return _log_path


def close_file_logging() -> None:
    """Close the JSONL log file, if one is open."""
    global _file_handler, _log_path
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
    _log_path = None
