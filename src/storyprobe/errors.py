"""Error types raised at the edges of storyprobe.

The analysis core itself does not raise for bad stories: validators report
issues, the fixer records failures and the simulator degrades to empty
results. These errors cover loading input documents and configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class StoryprobeError(Exception):
    """Base class for storyprobe errors."""


class StoryLoadError(StoryprobeError):
    """Raised when a story document cannot be read or does not match the model."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load story at {path}: {reason}")


class ConfigError(StoryprobeError):
    """Raised when analysis configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")
