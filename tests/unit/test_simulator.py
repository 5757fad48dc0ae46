"""Tests for the playthrough simulator."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from storyprobe.models.story import Story
from storyprobe.simulation import (
    PlaythroughData,
    SimulationOptions,
    SimulationResult,
    StorySimulator,
)
from tests.fixtures.stories import make_chain_story, make_story


class TestSimulationOptions:
    """Tests for SimulationOptions validation."""

    def test_defaults(self) -> None:
        options = SimulationOptions()

        assert options.max_simulations == 100
        assert options.max_depth == 100
        assert options.strategy == "random"
        assert options.seed is None

    def test_rejects_zero_depth(self) -> None:
        with pytest.raises(ValidationError):
            SimulationOptions(max_depth=0)

    def test_rejects_negative_runs(self) -> None:
        with pytest.raises(ValidationError):
            SimulationOptions(max_simulations=-1)

    def test_rejects_unknown_strategy(self) -> None:
        with pytest.raises(ValidationError):
            SimulationOptions(strategy="sideways")


class TestScenarios:
    """End-to-end behaviour on small reference stories."""

    def test_linear_story(self, linear_story: Story) -> None:
        result = StorySimulator(linear_story, seed=1).simulate(SimulationOptions(max_simulations=10))

        assert result.coverage == 1.0
        assert result.average_path_length == 3
        assert result.dead_ends == ["end"]
        assert result.paths[0] == ["start", "middle", "end"]
        assert result.player_agency == 0.0

    def test_linear_story_stops_at_full_coverage(self, linear_story: Story) -> None:
        result = StorySimulator(linear_story, seed=1).simulate(SimulationOptions(max_simulations=10))

        assert result.total_simulations == 1
        assert result.completed_walks == 1

    def test_branching_story(self, branching_story: Story) -> None:
        result = StorySimulator(branching_story).simulate(
            SimulationOptions(max_simulations=20, strategy="random", seed=42)
        )

        assert len(result.passage_visits) == 4
        assert result.coverage == 1.0
        assert 0.2 < result.player_agency < 0.8
        assert result.player_agency == pytest.approx(0.5 * 0.5 + 0.5 * (2 / 3))
        assert result.branching_factor == 1.0

    def test_empty_story(self) -> None:
        result = StorySimulator(Story(), seed=1).simulate(SimulationOptions(max_simulations=10))

        assert result.total_simulations == 10
        assert result.coverage == 0
        assert all(len(path) == 0 for path in result.paths)
        assert result.average_path_length == 0
        assert result.player_agency == 0
        assert result.branching_factor == 0
        assert not math.isnan(result.average_path_length)

    def test_hub_story_with_cycle(self, hub_story: Story) -> None:
        result = StorySimulator(hub_story, seed=5).simulate(
            SimulationOptions(max_simulations=20, max_depth=50)
        )

        assert result.total_simulations == 20
        assert all(len(path) <= 50 for path in result.paths)


class TestDeterminism:
    """Tests for seeded reproducibility."""

    def test_same_seed_same_result(self, hub_story: Story) -> None:
        options = SimulationOptions(max_simulations=15, max_depth=20)

        first = StorySimulator(hub_story, seed=7).simulate(options)
        second = StorySimulator(hub_story, seed=7).simulate(options)

        assert first.paths == second.paths
        assert first.passage_visits == second.passage_visits
        assert first.player_agency == second.player_agency
        assert first.coverage == second.coverage

    def test_options_seed_overrides_constructor(self, hub_story: Story) -> None:
        options = SimulationOptions(max_simulations=5, seed=3)

        result = StorySimulator(hub_story, seed=99).simulate(options)
        expected = StorySimulator(hub_story, seed=3).simulate(SimulationOptions(max_simulations=5))

        assert result.seed == 3
        assert result.paths == expected.paths

    def test_unseeded_run_reports_reproducible_seed(self, hub_story: Story) -> None:
        options = SimulationOptions(max_simulations=10, max_depth=20)

        result = StorySimulator(hub_story).simulate(options)
        replay = StorySimulator(hub_story, seed=result.seed).simulate(options)

        assert isinstance(result.seed, int)
        assert replay.paths == result.paths

    def test_keyword_overrides(self, hub_story: Story) -> None:
        result = StorySimulator(hub_story, seed=1).simulate(max_simulations=3, max_depth=4)

        assert result.total_simulations == 3
        assert all(len(p) <= 4 for p in result.paths)

    def test_keyword_overrides_are_validated(self, hub_story: Story) -> None:
        with pytest.raises(ValidationError):
            StorySimulator(hub_story).simulate(max_depth=0)


class TestStrategies:
    """Tests for the choice strategies."""

    def test_depth_first_takes_untried_choices(self, hub_story: Story) -> None:
        result = StorySimulator(hub_story).simulate(
            SimulationOptions(max_simulations=3, strategy="depth-first")
        )

        assert result.paths[0] == ["hub", "shop", "hub", "quest", "ending"]
        assert result.paths[0] == result.paths[2]

    def test_least_visited_covers_hub(self, hub_story: Story) -> None:
        result = StorySimulator(hub_story).simulate(
            SimulationOptions(max_simulations=2, strategy="least-visited")
        )

        assert result.paths == [
            ["hub", "shop", "hub", "quest", "ending"],
            ["hub", "dead_end"],
        ]
        assert result.coverage == 1.0
        assert result.unvisited_passages == []

    def test_least_visited_prefers_passages_over_end(self) -> None:
        story = make_story({"start": ["END", "room"], "room": []})

        result = StorySimulator(story).simulate(
            SimulationOptions(max_simulations=1, strategy="least-visited")
        )

        assert result.paths == [["start", "room"]]

    def test_breadth_first_covers_hub(self, hub_story: Story) -> None:
        result = StorySimulator(hub_story).simulate(
            SimulationOptions(max_simulations=2, strategy="breadth-first")
        )

        assert result.paths == [
            ["hub", "shop", "hub", "quest", "ending"],
            ["hub", "dead_end"],
        ]
        assert result.coverage == 1.0

    @pytest.mark.parametrize("strategy", ["random", "breadth-first", "depth-first", "least-visited"])
    def test_every_strategy_terminates_on_cycles(self, strategy: str) -> None:
        story = make_story({"a": ["b"], "b": ["a"]}, start="a")

        result = StorySimulator(story, seed=1).simulate(
            SimulationOptions(max_simulations=4, max_depth=10, strategy=strategy)
        )

        assert result.total_simulations == 4
        assert all(len(p) == 10 for p in result.paths)
        assert result.completed_walks == 0
        assert result.dead_ends == []
        assert result.strategy == strategy


class TestWalkEdges:
    """Tests for walk termination and degenerate stories."""

    def test_sentinel_ends_walk(self) -> None:
        story = make_story({"start": ["END"]})

        result = StorySimulator(story, seed=1).simulate(SimulationOptions(max_simulations=3))

        assert result.paths[0] == ["start"]
        assert result.dead_ends == []
        assert result.branching_factor == 1.0

    def test_dead_link_ends_walk(self) -> None:
        story = make_story({"start": ["nowhere"]})

        result = StorySimulator(story, seed=1).simulate(SimulationOptions(max_simulations=2))

        assert result.paths[0] == ["start"]
        assert "nowhere" not in result.passage_visits

    def test_missing_start_gives_empty_walks(self) -> None:
        story = make_story({"a": []}, start="gone")

        result = StorySimulator(story, seed=1).simulate(SimulationOptions(max_simulations=4))

        assert result.total_simulations == 4
        assert result.paths == [[], [], [], []]
        assert result.coverage == 0
        assert result.unvisited_passages == ["a"]

    def test_unset_start_uses_first_passage(self) -> None:
        story = make_story({"first": ["second"], "second": []}, start=None)

        result = StorySimulator(story, seed=1).simulate(SimulationOptions(max_simulations=1))

        assert result.paths == [["first", "second"]]

    def test_zero_simulations(self, linear_story: Story) -> None:
        result = StorySimulator(linear_story, seed=1).simulate(SimulationOptions(max_simulations=0))

        assert result.total_simulations == 0
        assert result.paths == []
        assert result.average_path_length == 0
        assert result.coverage == 0
        assert result.completion_rate == 0

    def test_depth_cap(self, linear_story: Story) -> None:
        result = StorySimulator(linear_story, seed=1).simulate(
            SimulationOptions(max_simulations=2, max_depth=2)
        )

        assert result.paths[0] == ["start", "middle"]
        assert result.completed_walks == 0
        assert result.max_path_length == 2

    def test_unreachable_passages_reported(self) -> None:
        story = make_story({"start": ["END"], "island": []})

        result = StorySimulator(story, seed=1).simulate(SimulationOptions(max_simulations=5))

        assert result.coverage == 0.5
        assert result.unvisited_passages == ["island"]
        assert result.total_simulations == 5

    def test_visits_count_every_visit(self) -> None:
        story = make_story({"a": ["b"], "b": ["a"]}, start="a")

        result = StorySimulator(story, seed=1).simulate(
            SimulationOptions(max_simulations=1, max_depth=5)
        )

        assert result.passage_visits == {"a": 3, "b": 2}

    def test_story_not_modified(self, hub_story: Story) -> None:
        before = hub_story.model_dump()

        StorySimulator(hub_story, seed=1).simulate(SimulationOptions(max_simulations=10))

        assert hub_story.model_dump() == before


class TestPlaythroughData:
    """Tests for to_playthrough_data."""

    def test_linear_story(self, linear_story: Story) -> None:
        result = StorySimulator(linear_story, seed=1).simulate(SimulationOptions(max_simulations=5))

        data = StorySimulator.to_playthrough_data(result, linear_story)

        assert isinstance(data, PlaythroughData)
        assert data.total_simulations == result.total_simulations
        assert data.critical_path == ["start", "middle", "end"]
        assert [e.passage_id for e in data.most_visited_passages] == ["start", "middle", "end"]
        assert data.most_visited_passages[0].passage_name == "Start"
        assert data.most_visited_passages[0].percentage == 100.0
        assert data.coverage == 1.0

    def test_branching_story_order(self, branching_story: Story) -> None:
        result = StorySimulator(branching_story).simulate(
            SimulationOptions(max_simulations=20, seed=42)
        )

        data = StorySimulator.to_playthrough_data(result, branching_story)

        assert [e.passage_id for e in data.most_visited_passages[:2]] == ["start", "end"]
        assert data.critical_path[0] == "start"
        assert all(0 < e.percentage <= 100 for e in data.most_visited_passages)

    def test_percentage_counts_walks_not_visits(self) -> None:
        result = SimulationResult(
            total_simulations=2,
            passage_visits={"a": 4, "b": 1},
            paths=[["a", "a", "a"], ["a", "b"]],
        )
        story = make_story({"a": ["a", "b"], "b": []}, start="a")

        data = StorySimulator.to_playthrough_data(result, story)

        by_id = {e.passage_id: e for e in data.most_visited_passages}
        assert by_id["a"].percentage == 100.0
        assert by_id["a"].visit_count == 4
        assert by_id["b"].percentage == 50.0
        assert [e.passage_id for e in data.least_visited_passages] == ["b", "a"]

    def test_unknown_passage_name(self) -> None:
        result = SimulationResult(total_simulations=1, passage_visits={"ghost": 1}, paths=[["ghost"]])

        data = StorySimulator.to_playthrough_data(result, Story())

        assert data.most_visited_passages[0].passage_name == "Unknown"

    def test_top_ten(self) -> None:
        story = make_chain_story(15)
        result = StorySimulator(story, seed=1).simulate(SimulationOptions(max_simulations=1))

        data = StorySimulator.to_playthrough_data(result, story)

        assert len(data.most_visited_passages) == 10
        assert len(data.least_visited_passages) == 10
        assert data.most_visited_passages[0].passage_id == "p0"

    def test_empty_result(self) -> None:
        data = StorySimulator.to_playthrough_data(SimulationResult(total_simulations=0), Story())

        assert data.most_visited_passages == []
        assert data.critical_path == []
        assert data.average_path_length == 0
