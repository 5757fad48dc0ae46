"""Playthrough simulation and narrative metrics."""

from storyprobe.simulation.simulator import StorySimulator
from storyprobe.simulation.types import (
    STRATEGIES,
    PassageVisitData,
    PlaythroughData,
    SimulationOptions,
    SimulationResult,
    Strategy,
)

__all__ = [
    "STRATEGIES",
    "PassageVisitData",
    "PlaythroughData",
    "SimulationOptions",
    "SimulationResult",
    "StorySimulator",
    "Strategy",
]
