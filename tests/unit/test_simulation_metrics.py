"""Tests for simulation metrics."""

from __future__ import annotations

import pytest

from storyprobe.simulation.metrics import (
    MAX_DIVERGENCE_COMPARISONS,
    average_length,
    branching_factor,
    compute_coverage,
    critical_path,
    divergence_point,
    mean_divergence,
    player_agency,
)
from tests.fixtures.stories import make_branching_story


class TestPlayerAgency:
    """Tests for player_agency."""

    def test_linear_paths(self) -> None:
        paths = [["a", "b", "c"]] * 5

        assert player_agency(paths) == 0.0

    def test_two_way_branch(self) -> None:
        paths = [["s", "l", "e"], ["s", "r", "e"], ["s", "l", "e"]]

        assert player_agency(paths) == pytest.approx(0.25 + 1 / 3)

    def test_empty_paths_ignored(self) -> None:
        assert player_agency([[], [], ["a"]]) == 0.0
        assert player_agency([]) == 0.0

    def test_bounded(self) -> None:
        paths = [[str(i), str(i + 1)] for i in range(50)]

        assert 0.0 <= player_agency(paths) <= 1.0


class TestDivergence:
    """Tests for divergence helpers."""

    def test_divergence_point(self) -> None:
        assert divergence_point(["a", "b", "c"], ["a", "b", "d"]) == 2
        assert divergence_point(["a"], ["a", "b"]) == 1
        assert divergence_point(["x"], ["y"]) == 0

    def test_mean_divergence(self) -> None:
        assert mean_divergence([("a", "b"), ("a", "c")]) == 0.5
        assert mean_divergence([("a",)]) == 0.0

    def test_comparisons_capped(self) -> None:
        # The first 100 pairs all diverge immediately; the pair sharing a
        # prefix comes later and is never compared.
        signatures = [("a",)] + [(f"b{i}",) for i in range(100)] + [("b0", "x")]

        assert MAX_DIVERGENCE_COMPARISONS == 100
        assert mean_divergence(signatures) == 1.0


class TestCriticalPath:
    """Tests for critical_path."""

    def test_unanimous(self) -> None:
        assert critical_path([["a", "b"], ["a", "b"]]) == ["a", "b"]

    def test_majority(self) -> None:
        paths = [["a", "b", "d"], ["a", "b", "e"], ["a", "c"]]

        assert critical_path(paths) == ["a", "b"]

    def test_even_split_stops(self) -> None:
        assert critical_path([["a", "b"], ["a", "c"]]) == ["a"]

    def test_empty(self) -> None:
        assert critical_path([]) == []
        assert critical_path([[], []]) == []


class TestSimpleMetrics:
    """Tests for coverage, averages and branching."""

    def test_coverage(self) -> None:
        assert compute_coverage(2, 4) == 0.5
        assert compute_coverage(0, 0) == 0.0

    def test_average_length(self) -> None:
        assert average_length([["a"], ["a", "b", "c"]]) == 2.0
        assert average_length([]) == 0.0

    def test_branching_factor(self) -> None:
        story = make_branching_story()

        assert branching_factor(story, ["start", "left", "right", "end"]) == 1.0
        assert branching_factor(story, ["start"]) == 2.0
        assert branching_factor(story, []) == 0.0
