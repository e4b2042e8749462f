"""Exhaustive breadth-first reference searches.

These never use heuristics and serve as the oracle for optimal lengths and
for verifying that a pruned pocket really holds no endpoint.
"""

import math
from collections import deque
from typing import Callable, Iterable, Optional, Set

from lattice_search.core.data_models import Position
from lattice_search.search.neighbors import NEIGHBOR_OFFSETS, ObstaclePredicate


def breadth_first_length(predicate: ObstaclePredicate,
                         starts: Iterable[Position],
                         targets: Iterable[Position],
                         max_visited: Optional[int] = None) -> float:
    """Multi-source BFS shortest path length.

    Args:
        predicate: Obstacle predicate, True means blocked
        starts: Start positions
        targets: Target positions
        max_visited: Optional cap on visited cells for unbounded boards

    Returns:
        Optimal length, or inf when no target is reachable
    """
    goal = {t for t in targets if not predicate(t)}
    frontier = deque()
    seen: Set[Position] = set()
    for start in starts:
        if predicate(start) or start in seen:
            continue
        if start in goal:
            return 0
        seen.add(start)
        frontier.append((start, 0))

    while frontier:
        (x, y), depth = frontier.popleft()
        for dx, dy in NEIGHBOR_OFFSETS:
            candidate = (x + dx, y + dy)
            if candidate in seen or predicate(candidate):
                continue
            if candidate in goal:
                return depth + 1
            seen.add(candidate)
            if max_visited is not None and len(seen) > max_visited:
                return math.inf
            frontier.append((candidate, depth + 1))
    return math.inf


def flood_fill(origin: Position,
               blocked: Callable[[Position], bool],
               limit: Optional[int] = None) -> Optional[Set[Position]]:
    """Collect every cell 4-connected to ``origin``.

    Args:
        origin: Starting cell
        blocked: Returns True for cells the fill may not enter
        limit: Maximum region size

    Returns:
        The region, or None when it grows beyond ``limit``
    """
    region = {origin}
    frontier = deque([origin])
    while frontier:
        x, y = frontier.popleft()
        for dx, dy in NEIGHBOR_OFFSETS:
            candidate = (x + dx, y + dy)
            if candidate in region or blocked(candidate):
                continue
            region.add(candidate)
            if limit is not None and len(region) > limit:
                return None
            frontier.append(candidate)
    return region
