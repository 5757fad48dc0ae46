"""Simulation option and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Strategy = Literal["random", "breadth-first", "depth-first", "least-visited"]
STRATEGIES: tuple[Strategy, ...] = ("random", "breadth-first", "depth-first", "least-visited")


class SimulationOptions(BaseModel):
    """Options for a simulation run.

    Attributes:
        max_simulations: Upper bound on the number of walks.
        max_depth: Maximum passages per walk; bounds walks through cycles.
        strategy: How each walk picks the next choice.
        seed: Overrides the simulator's seed for this run when set.
    """

    model_config = ConfigDict(frozen=True)

    max_simulations: int = Field(default=100, ge=0)
    max_depth: int = Field(default=100, ge=1)
    strategy: Strategy = "random"
    seed: int | None = None


@dataclass
class SimulationResult:
    """Statistics gathered from simulated walks.

    Attributes:
        total_simulations: Walks actually run (fewer than requested when an
            acyclic story reaches full coverage early).
        passage_visits: Visit count per passage, every visit counted, in
            first-visit order.
        paths: Passage sequence of every walk, in walk order.
        average_path_length: Mean walk length (0 when there were no walks).
        coverage: Distinct visited passages / total passages, 0 for an empty
            story.
        dead_ends: Visited passages with no choices.
        unvisited_passages: Passages no walk reached.
        player_agency: Path diversity in [0, 1].
        branching_factor: Mean choice count over visited passages.
        min_path_length: Shortest walk.
        max_path_length: Longest walk.
        completed_walks: Walks that ended before hitting ``max_depth``.
        seed: Base seed the walks were derived from.
        strategy: Strategy used.
    """

    total_simulations: int
    passage_visits: dict[str, int] = field(default_factory=dict)
    paths: list[list[str]] = field(default_factory=list)
    average_path_length: float = 0.0
    coverage: float = 0.0
    dead_ends: list[str] = field(default_factory=list)
    unvisited_passages: list[str] = field(default_factory=list)
    player_agency: float = 0.0
    branching_factor: float = 0.0
    min_path_length: int = 0
    max_path_length: int = 0
    completed_walks: int = 0
    seed: int | None = None
    strategy: Strategy = "random"

    @property
    def completion_rate(self) -> float:
        """Share of walks that ended naturally rather than at the depth cap."""
        if self.total_simulations == 0:
            return 0.0
        return self.completed_walks / self.total_simulations


@dataclass
class PassageVisitData:
    """Visit statistics for one passage.

    ``percentage`` is the share of walks that visited the passage at least
    once, so it never exceeds 100 even for passages revisited in loops.
    """

    passage_id: str
    passage_name: str
    visit_count: int
    percentage: float


@dataclass
class PlaythroughData:
    """Report form of a simulation result for display."""

    total_simulations: int
    average_path_length: float
    most_visited_passages: list[PassageVisitData] = field(default_factory=list)
    least_visited_passages: list[PassageVisitData] = field(default_factory=list)
    critical_path: list[str] = field(default_factory=list)
    branching_factor: float = 0.0
    player_agency: float = 0.0
    coverage: float = 0.0
