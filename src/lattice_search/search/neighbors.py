"""Neighbor generation on the implicit 4-connected grid."""

import itertools
import logging
from typing import Callable, List, Optional

from lattice_search.core.data_models import Node, Position

logger = logging.getLogger(__name__)

ObstaclePredicate = Callable[[Position], bool]

# Dimension 0 before dimension 1, +1 before -1.
NEIGHBOR_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class NodeFactory:
    """Creates nodes with strictly increasing ids for one search run."""

    def __init__(self):
        self._ids = itertools.count()
        self.created = 0

    def seed(self, position: Position, h: float) -> Node:
        self.created += 1
        return Node(position=position, g=0, h=h, id=next(self._ids))

    def child(self, parent: Node, position: Position, h: float) -> Node:
        self.created += 1
        return Node(position=position, g=parent.g + 1, h=h,
                    id=next(self._ids), parent=parent)


class NeighborGenerator:
    """Yields open axis-aligned neighbors of a node.

    A candidate is rejected when the obstacle predicate marks it blocked or
    when it is the position of the node's parent.
    """

    def __init__(self, predicate: ObstaclePredicate):
        self.predicate = predicate
        self.predicate_calls = 0

    def open_positions(self, node: Node) -> List[Position]:
        x, y = node.position
        back = node.parent.position if node.parent is not None else None
        result = []
        for dx, dy in NEIGHBOR_OFFSETS:
            candidate = (x + dx, y + dy)
            if candidate == back:
                continue
            self.predicate_calls += 1
            if self.predicate(candidate):
                continue
            result.append(candidate)
        return result

    def forced_step(self, node: Node) -> Optional[Position]:
        """Return the only way forward from a corridor cell, if there is one.

        Seeds have no parent and are never treated as corridor cells.
        """
        if node.parent is None:
            return None
        candidates = self.open_positions(node)
        if len(candidates) == 1:
            return candidates[0]
        return None
