"""Frontier and closed-map structures shared by the search strategies."""

import heapq
import logging
from typing import Dict, Iterator, List, Optional

from lattice_search.core.data_models import Node, Position, pack_position

logger = logging.getLogger(__name__)


class ClosedMap:
    """Best known node per position.

    Exactly one node per packed position key is authoritative. A node keeps
    authority only while the stored entry carries its id, so superseded
    duplicates still sitting in a frontier can be recognised and skipped.
    """

    def __init__(self):
        self._entries: Dict[int, Node] = {}
        self.superseded = 0

    def get(self, position: Position) -> Optional[Node]:
        return self._entries.get(pack_position(position))

    def put(self, node: Node) -> Optional[Node]:
        """Store ``node`` as authoritative for its position.

        Returns:
            The node it replaced, if any
        """
        key = node.key
        previous = self._entries.get(key)
        self._entries[key] = node
        if previous is not None:
            self.superseded += 1
        return previous

    def is_authoritative(self, node: Node) -> bool:
        current = self._entries.get(node.key)
        return current is not None and current.id == node.id

    def remove(self, node: Node) -> None:
        if self.is_authoritative(node):
            del self._entries[node.key]

    def positions(self) -> List[Position]:
        return [node.position for node in self._entries.values()]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, position: Position) -> bool:
        return pack_position(position) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._entries.values())


class PriorityFrontier:
    """Binary heap of nodes ordered by (f, h, id).

    Removal of superseded entries is lazy: callers check authority against
    their closed map when popping.
    """

    def __init__(self):
        self._heap: List[Node] = []
        self.max_size = 0

    def push(self, node: Node) -> None:
        heapq.heappush(self._heap, node)
        if len(self._heap) > self.max_size:
            self.max_size = len(self._heap)

    def pop(self) -> Optional[Node]:
        if not self._heap:
            return None
        return heapq.heappop(self._heap)

    def pop_authoritative(self, closed: ClosedMap) -> Optional[Node]:
        """Pop the best node that still owns its closed-map entry."""
        while self._heap:
            node = heapq.heappop(self._heap)
            if closed.is_authoritative(node):
                return node
        return None

    def peek(self) -> Optional[Node]:
        return self._heap[0] if self._heap else None

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)


class StackFrontier:
    """LIFO frontier used by the iterative deepening strategies."""

    def __init__(self):
        self._stack: List[Node] = []
        self.max_size = 0

    def push(self, node: Node) -> None:
        self._stack.append(node)
        if len(self._stack) > self.max_size:
            self.max_size = len(self._stack)

    def pop(self) -> Optional[Node]:
        if not self._stack:
            return None
        return self._stack.pop()

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)

    def __bool__(self) -> bool:
        return bool(self._stack)
