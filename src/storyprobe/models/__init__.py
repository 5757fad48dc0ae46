"""Story graph models."""

from storyprobe.models.story import (
    BACK,
    END,
    RESTART,
    SENTINEL_TARGETS,
    Asset,
    Choice,
    Passage,
    Story,
    Variable,
    VariableType,
)

__all__ = [
    "BACK",
    "END",
    "RESTART",
    "SENTINEL_TARGETS",
    "Asset",
    "Choice",
    "Passage",
    "Story",
    "Variable",
    "VariableType",
]
