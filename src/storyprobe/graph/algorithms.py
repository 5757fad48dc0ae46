"""Shared graph algorithms over the passage/choice graph.

Pure functions that never modify the story. Sentinel targets (END, BACK,
RESTART) and targets that do not resolve to a passage are not edges.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storyprobe.models.story import Story


def build_passage_adjacency(story: Story) -> dict[str, list[str]]:
    """Build passage → successor passages adjacency list from choices.

    Every passage gets an entry (possibly empty). Successors keep choice
    order with duplicates removed.

    Args:
        story: The story graph.

    Returns:
        Dict mapping each passage ID to a list of successor passage IDs.
    """
    adjacency: dict[str, list[str]] = {}
    for pid, passage in story.passages.items():
        successors: list[str] = []
        for choice in passage.choices:
            target = choice.target
            if choice.is_sentinel or target not in story.passages:
                continue
            if target not in successors:
                successors.append(target)
        adjacency[pid] = successors
    return adjacency


def bfs_distances(adjacency: dict[str, list[str]], start: str) -> dict[str, int]:
    """Breadth-first distances from ``start`` to every reachable passage.

    The result is ordered by discovery (level order) and includes ``start``
    at distance 0. Returns an empty dict if ``start`` is not in the graph.
    """
    if start not in adjacency:
        return {}
    distances: dict[str, int] = {start: 0}
    queue: deque[str] = deque([start])
    while queue:
        current = queue.popleft()
        for successor in adjacency.get(current, []):
            if successor not in distances:
                distances[successor] = distances[current] + 1
                queue.append(successor)
    return distances


def find_reachable_passages(story: Story, start: str | None = None) -> set[str]:
    """Return IDs of passages reachable from ``start`` (default: the story start)."""
    origin = start if start is not None else story.start_passage
    if origin is None:
        return set()
    return set(bfs_distances(build_passage_adjacency(story), origin))


def has_reachable_cycle(adjacency: dict[str, list[str]], start: str) -> bool:
    """True if any cycle is reachable from ``start``.

    Iterative three-colour DFS, so deep linear stories do not hit the
    recursion limit.
    """
    if start not in adjacency:
        return False

    white, grey, black = 0, 1, 2
    colour: dict[str, int] = {}
    stack: list[tuple[str, int]] = [(start, 0)]
    colour[start] = grey

    while stack:
        node, index = stack[-1]
        successors = adjacency.get(node, [])
        if index < len(successors):
            stack[-1] = (node, index + 1)
            successor = successors[index]
            state = colour.get(successor, white)
            if state == grey:
                return True
            if state == white:
                colour[successor] = grey
                stack.append((successor, 0))
        else:
            colour[node] = black
            stack.pop()

    return False
