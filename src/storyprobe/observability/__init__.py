"""Observability module for storyprobe.

Provides structured logging (structlog + rich).
"""

from storyprobe.observability.logging import (
    close_file_logging,
    configure_logging,
    get_log_path,
    get_logger,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_log_path",
    "get_logger",
]
