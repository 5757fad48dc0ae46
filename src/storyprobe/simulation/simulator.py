"""Monte-Carlo style playthrough simulation.

Walks start at the story's start passage and follow one choice per step
until they reach a passage without choices, pick a choice whose target is a
sentinel or missing passage, or hit ``max_depth``. Choice conditions and
scripts are not evaluated; every choice is available.

Each walk draws from its own substream, ``random.Random(f"{seed}:{index}")``,
so results depend only on the story, the seed and the options. Walks run in
index order because the visit-count strategies read the counts of earlier
walks.
"""

from __future__ import annotations

import math
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from storyprobe.graph.algorithms import bfs_distances, build_passage_adjacency, has_reachable_cycle
from storyprobe.observability.logging import get_logger
from storyprobe.simulation.metrics import (
    average_length,
    branching_factor,
    compute_coverage,
    critical_path,
    player_agency,
)
from storyprobe.simulation.types import (
    PassageVisitData,
    PlaythroughData,
    SimulationOptions,
    SimulationResult,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from storyprobe.models.story import Passage, Story

log = get_logger(__name__)

TOP_PASSAGES = 10

# Score for choices that leave the passage graph (sentinels, dead links).
_OFF_GRAPH = (math.inf, math.inf)


@dataclass
class _Walk:
    path: list[str] = field(default_factory=list)
    completed: bool = True


class StorySimulator:
    """Runs simulated playthroughs of a story.

    Args:
        story: The story to walk. It is not modified.
        seed: Base seed. When None a seed is drawn from system entropy and
            reported on the result, so the run can be reproduced.
    """

    def __init__(self, story: Story, seed: int | None = None) -> None:
        self.story = story
        self.seed = seed
        self._adjacency = build_passage_adjacency(story)
        self._distances: dict[str, dict[str, int]] = {}

    def simulate(
        self, options: SimulationOptions | None = None, **overrides: Any
    ) -> SimulationResult:
        """Run walks and aggregate their statistics.

        Args:
            options: Simulation options; defaults when None.
            **overrides: Individual option fields, applied on top of
                ``options`` (e.g. ``simulate(max_simulations=10)``).

        Returns:
            SimulationResult for the walks that ran.
        """
        if overrides:
            base = options.model_dump() if options is not None else {}
            options = SimulationOptions.model_validate({**base, **overrides})
        elif options is None:
            options = SimulationOptions()

        base_seed = self._resolve_seed(options)
        start = self._resolve_start()
        passage_count = len(self.story.passages)
        can_stop_early = start is not None and not has_reachable_cycle(self._adjacency, start)

        visits: dict[str, int] = {}
        paths: list[list[str]] = []
        completed = 0

        for index in range(options.max_simulations):
            rng = random.Random(f"{base_seed}:{index}")
            walk = self._walk(start, options, rng, visits)
            paths.append(walk.path)
            for pid in walk.path:
                visits[pid] = visits.get(pid, 0) + 1
            if walk.completed:
                completed += 1
            if can_stop_early and len(visits) >= passage_count:
                log.debug("simulation_full_coverage", walks=index + 1)
                break

        lengths = [len(p) for p in paths]
        result = SimulationResult(
            total_simulations=len(paths),
            passage_visits=visits,
            paths=paths,
            average_path_length=average_length(paths),
            coverage=compute_coverage(len(visits), passage_count),
            dead_ends=[pid for pid in visits if not self.story.passages[pid].choices],
            unvisited_passages=[pid for pid in self.story.passages if pid not in visits],
            player_agency=player_agency(paths),
            branching_factor=branching_factor(self.story, list(visits)),
            min_path_length=min(lengths, default=0),
            max_path_length=max(lengths, default=0),
            completed_walks=completed,
            seed=base_seed,
            strategy=options.strategy,
        )
        log.info(
            "simulation_complete",
            walks=result.total_simulations,
            strategy=options.strategy,
            coverage=round(result.coverage, 3),
            seed=base_seed,
        )
        return result

    @staticmethod
    def to_playthrough_data(result: SimulationResult, story: Story) -> PlaythroughData:
        """Convert a result into the report form used for display.

        Percentages are the share of walks that visited a passage. Ties are
        broken by visit count, then by first appearance.
        """
        total = result.total_simulations
        walks_containing: Counter[str] = Counter()
        for path in result.paths:
            walks_containing.update(set(path))

        entries: list[PassageVisitData] = []
        for pid, count in result.passage_visits.items():
            passage = story.passages.get(pid)
            entries.append(
                PassageVisitData(
                    passage_id=pid,
                    passage_name=passage.title if passage is not None and passage.title else "Unknown",
                    visit_count=count,
                    percentage=walks_containing[pid] / total * 100 if total else 0.0,
                )
            )

        most = sorted(entries, key=lambda e: (-e.percentage, -e.visit_count))
        least = sorted(entries, key=lambda e: (e.percentage, e.visit_count))

        return PlaythroughData(
            total_simulations=total,
            average_path_length=result.average_path_length,
            most_visited_passages=most[:TOP_PASSAGES],
            least_visited_passages=least[:TOP_PASSAGES],
            critical_path=critical_path(result.paths),
            branching_factor=result.branching_factor,
            player_agency=result.player_agency,
            coverage=result.coverage,
        )

    # -- Walks -----------------------------------------------------------------

    def _resolve_seed(self, options: SimulationOptions) -> int:
        if options.seed is not None:
            return options.seed
        if self.seed is not None:
            return self.seed
        return random.SystemRandom().randrange(2**32)

    def _resolve_start(self) -> str | None:
        start = self.story.start_passage
        if start is None:
            return next(iter(self.story.passages), None)
        if start not in self.story.passages:
            log.warning("simulation_start_missing", start=start)
            return None
        return start

    def _walk(
        self,
        start: str | None,
        options: SimulationOptions,
        rng: random.Random,
        visits: dict[str, int],
    ) -> _Walk:
        walk = _Walk()
        if start is None:
            return walk

        local: dict[str, int] = {}
        taken: set[tuple[str, int]] = set()
        current = start
        while len(walk.path) < options.max_depth:
            walk.path.append(current)
            local[current] = local.get(current, 0) + 1

            passage = self.story.passages[current]
            if not passage.choices:
                return walk

            index = self._choose(options.strategy, passage, rng, visits, local, taken)
            taken.add((current, index))
            target = passage.choices[index].target
            if target not in self.story.passages:
                return walk
            current = target

        walk.completed = False
        return walk

    def _choose(
        self,
        strategy: str,
        passage: Passage,
        rng: random.Random,
        visits: dict[str, int],
        local: dict[str, int],
        taken: set[tuple[str, int]],
    ) -> int:
        choices = passage.choices

        def seen(pid: str) -> int:
            return visits.get(pid, 0) + local.get(pid, 0)

        if strategy == "least-visited":
            scores = [
                (seen(c.target), 0) if c.target in self.story.passages else _OFF_GRAPH
                for c in choices
            ]
        elif strategy == "breadth-first":
            scores = [self._frontier_score(c.target, seen) for c in choices]
        elif strategy == "depth-first":
            for index in range(len(choices)):
                if (passage.id, index) not in taken:
                    return index
            return 0
        else:
            return rng.randrange(len(choices))

        return min(range(len(choices)), key=lambda i: (scores[i], i))

    def _frontier_score(
        self, target: str, seen: Callable[[str], int]
    ) -> tuple[float, float]:
        """(visits, distance) of the least-visited passage reachable from ``target``."""
        if target not in self.story.passages:
            return _OFF_GRAPH
        distances = self._distances.get(target)
        if distances is None:
            distances = bfs_distances(self._adjacency, target)
            self._distances[target] = distances
        return min((seen(pid), dist) for pid, dist in distances.items())
