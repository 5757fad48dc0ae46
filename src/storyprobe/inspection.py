"""Story inspection and quality analysis.

Combines validation, structure metrics and a playthrough simulation into a
single report for display. Pure analysis; the story is not modified.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from storyprobe.config import AnalysisConfig
from storyprobe.graph.algorithms import bfs_distances, build_passage_adjacency, has_reachable_cycle
from storyprobe.models.story import SENTINEL_TARGETS
from storyprobe.observability.logging import get_logger
from storyprobe.simulation import SimulationOptions, StorySimulator
from storyprobe.validation import ValidationOptions, create_default_registry

if TYPE_CHECKING:
    from storyprobe.models.story import Story
    from storyprobe.simulation import PlaythroughData
    from storyprobe.validation import ValidationResult

log = get_logger(__name__)


@dataclass
class ProseStats:
    """Word counts across passages with content."""

    total_passages: int
    passages_with_content: int
    total_words: int = 0
    avg_words: float = 0.0
    min_words: int = 0
    max_words: int = 0


@dataclass
class StructureStats:
    """Graph shape seen from the start passage."""

    start_passage: str | None = None
    reachable_passages: int = 0
    ending_passages: int = 0
    max_depth: int = 0
    has_cycles: bool = False
    total_choices: int = 0
    sentinel_choices: int = 0


@dataclass
class InspectionReport:
    """Complete story inspection report."""

    title: str
    validation: ValidationResult
    structure: StructureStats = field(default_factory=StructureStats)
    prose: ProseStats | None = None
    playthrough: PlaythroughData | None = None


def inspect_story(story: Story, config: AnalysisConfig | None = None) -> InspectionReport:
    """Run all inspection checks on a story.

    Args:
        story: The story to inspect.
        config: Analysis configuration; defaults when None.

    Returns:
        InspectionReport with validation, structure, prose and simulation
        results. ``playthrough`` is None for a story without passages.
    """
    config = config or AnalysisConfig()

    registry = create_default_registry(config.validation)
    validation = registry.run(story, ValidationOptions())
    structure = _structure_stats(story)
    prose = _prose_stats(story)

    playthrough = None
    if story.passages:
        sim = config.simulation
        simulator = StorySimulator(story, seed=sim.seed)
        result = simulator.simulate(
            SimulationOptions(
                max_simulations=sim.max_simulations,
                max_depth=sim.max_depth,
                strategy=sim.strategy,
            )
        )
        playthrough = StorySimulator.to_playthrough_data(result, story)

    log.info(
        "inspection_complete",
        title=story.title,
        passages=len(story.passages),
        issues=len(validation.issues),
    )

    return InspectionReport(
        title=story.title,
        validation=validation,
        structure=structure,
        prose=prose,
        playthrough=playthrough,
    )


def _structure_stats(story: Story) -> StructureStats:
    adjacency = build_passage_adjacency(story)
    start = story.start_passage
    distances = bfs_distances(adjacency, start) if start else {}

    choices = [c for p in story.passages.values() for c in p.choices]
    return StructureStats(
        start_passage=start,
        reachable_passages=len(distances),
        ending_passages=sum(
            1
            for p in story.passages.values()
            if not p.choices or any(c.target in SENTINEL_TARGETS for c in p.choices)
        ),
        max_depth=max(distances.values(), default=0),
        has_cycles=bool(start) and has_reachable_cycle(adjacency, start),
        total_choices=len(choices),
        sentinel_choices=sum(1 for c in choices if c.is_sentinel),
    )


def _prose_stats(story: Story) -> ProseStats | None:
    """Word counts over passage content."""
    if not story.passages:
        return None

    word_counts = [len(p.content.split()) for p in story.passages.values() if p.content.strip()]
    return ProseStats(
        total_passages=len(story.passages),
        passages_with_content=len(word_counts),
        total_words=sum(word_counts),
        avg_words=round(sum(word_counts) / len(word_counts), 1) if word_counts else 0.0,
        min_words=min(word_counts, default=0),
        max_words=max(word_counts, default=0),
    )
