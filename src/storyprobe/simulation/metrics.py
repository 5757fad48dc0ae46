"""Narrative-design metrics derived from simulated walks.

Pure functions over walk paths; every function returns 0 (or an empty
list) for degenerate input instead of dividing by zero.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from storyprobe.models.story import Story

MAX_DIVERGENCE_COMPARISONS = 100


def compute_coverage(visited: int, total: int) -> float:
    """Fraction of passages visited; 0 for a story without passages."""
    if total <= 0:
        return 0.0
    return visited / total


def average_length(paths: Sequence[Sequence[str]]) -> float:
    if not paths:
        return 0.0
    return sum(len(p) for p in paths) / len(paths)


def divergence_point(first: Sequence[str], second: Sequence[str]) -> int:
    """Length of the shared prefix of two paths."""
    shortest = min(len(first), len(second))
    for index in range(shortest):
        if first[index] != second[index]:
            return index
    return shortest


def mean_divergence(signatures: Sequence[Sequence[str]]) -> float:
    """Average share of the longer path lying after the divergence point.

    Compares at most ``MAX_DIVERGENCE_COMPARISONS`` pairs, in order.
    """
    total = 0.0
    count = 0
    for i, first in enumerate(signatures):
        for second in signatures[i + 1 :]:
            if count >= MAX_DIVERGENCE_COMPARISONS:
                break
            longest = max(len(first), len(second))
            if longest == 0:
                continue
            total += (longest - divergence_point(first, second)) / longest
            count += 1
    return total / count if count else 0.0


def player_agency(paths: Sequence[Sequence[str]]) -> float:
    """Path diversity normalized to [0, 1].

    Half of the score is ``1 - 1/n`` for ``n`` distinct non-empty path
    signatures, half is how far apart those signatures run on average. A
    strictly linear story scores 0; a single two-way branch that rejoins
    scores about 0.58.
    """
    signatures = list(dict.fromkeys(tuple(p) for p in paths if p))
    if len(signatures) < 2:
        return 0.0
    diversity = 1.0 - 1.0 / len(signatures)
    return 0.5 * diversity + 0.5 * mean_divergence(signatures)


def branching_factor(story: Story, visited: Sequence[str]) -> float:
    """Mean number of choices over visited passages."""
    counts = [len(story.passages[pid].choices) for pid in visited if pid in story.passages]
    if not counts:
        return 0.0
    return sum(counts) / len(counts)


def critical_path(paths: Sequence[Sequence[str]]) -> list[str]:
    """Passage sequence that a majority of walks share from the start.

    Extends the path while the most common next passage among walks still
    following it is taken by more than half of all non-empty walks. When
    every walk agrees this is their common prefix.
    """
    walks = [p for p in paths if p]
    if not walks:
        return []

    critical: list[str] = []
    following = walks
    depth = 0
    while following:
        counter = Counter(p[depth] for p in following if len(p) > depth)
        if not counter:
            break
        passage, count = counter.most_common(1)[0]
        if count * 2 <= len(walks):
            break
        critical.append(passage)
        following = [p for p in following if len(p) > depth and p[depth] == passage]
        depth += 1
    return critical
