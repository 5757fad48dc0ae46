"""Graph algorithms over the story's passage/choice structure."""

from storyprobe.graph.algorithms import (
    bfs_distances,
    build_passage_adjacency,
    find_reachable_passages,
    has_reachable_cycle,
)

__all__ = [
    "bfs_distances",
    "build_passage_adjacency",
    "find_reachable_passages",
    "has_reachable_cycle",
]
