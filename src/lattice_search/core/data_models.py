"""Core data models for lattice search.

Positions are plain integer tuples. Nodes carry the cost bookkeeping used by
every strategy and define the deterministic expansion order (f, h, id).
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

Position = Tuple[int, int]

_LOW_MASK = 0xFFFFFFFF


def pack_position(position: Position) -> int:
    """Pack an (x, y) pair into a single 64-bit style key.

    x occupies the high 32 bits and y the low 32 bits, matching the layout
    used for closed-map lookups.
    """
    x, y = position
    return (x << 32) | (y & _LOW_MASK)


def unpack_position(key: int) -> Position:
    """Inverse of :func:`pack_position`."""
    y = key & _LOW_MASK
    if y & 0x80000000:
        y -= 1 << 32
    return (key >> 32, y)


def manhattan(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def bounded_f(g: int, h: float) -> float:
    """Integer-tightened f used for all bound comparisons.

    Path lengths are integral, so g + ceil(h) is still a valid lower bound.
    """
    if math.isinf(h):
        return math.inf
    return g + math.ceil(h)


class SearchStrategy(str, Enum):
    """Available search strategies."""
    DFID = "dfid"
    ASTAR_ID = "astar_id"
    ASTAR = "astar"
    BIDIRECTIONAL_ASTAR = "bidirectional_astar"

    @classmethod
    def parse(cls, value: Any) -> "SearchStrategy":
        """Parse a strategy from an enum member, value or short alias.

        Raises:
            ValueError: If the name is not recognised
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower().replace("-", "_").replace("*", "star")
        aliases = {
            "iddfs": cls.DFID,
            "asid": cls.ASTAR_ID,
            "ida": cls.ASTAR_ID,
            "idastar": cls.ASTAR_ID,
            "as": cls.ASTAR,
            "a_star": cls.ASTAR,
            "bdas": cls.BIDIRECTIONAL_ASTAR,
            "bidirectional": cls.BIDIRECTIONAL_ASTAR,
        }
        if name in aliases:
            return aliases[name]
        for member in cls:
            if member.value == name:
                return member
        raise ValueError(f"Unknown search strategy: {value}")

    @property
    def uses_heuristic(self) -> bool:
        return self is not SearchStrategy.DFID


@dataclass(eq=False)
class Node:
    """Node in a search tree.

    Nodes compare by f = g + h, then h, then creation id, which gives a
    reproducible expansion order. Equality stays identity based.
    """
    position: Position
    g: int
    h: float
    id: int
    parent: Optional["Node"] = None

    @property
    def f_score(self) -> float:
        """Total estimated cost f(n) = g(n) + h(n)."""
        return self.g + self.h

    @property
    def bounded_f(self) -> float:
        return bounded_f(self.g, self.h)

    @property
    def key(self) -> int:
        return pack_position(self.position)

    def __lt__(self, other: "Node") -> bool:
        """Comparison for priority queue (lower f_score has higher priority)."""
        if self.f_score != other.f_score:
            return self.f_score < other.f_score
        if self.h != other.h:
            return self.h < other.h
        return self.id < other.id

    def chain(self) -> List[Position]:
        """Positions from the root of this node's tree to this node."""
        positions = []
        node: Optional[Node] = self
        while node is not None:
            positions.append(node.position)
            node = node.parent
        positions.reverse()
        return positions

    def __repr__(self) -> str:
        return f"Node(pos={self.position}, g={self.g}, h={self.h}, id={self.id})"


def join_chains(forward: Node, backward: Node) -> List[Position]:
    """Build a start-to-target path from a meeting node pair.

    The forward chain is read oldest to newest. The backward chain is read
    from the meeting point outwards, skipping the meeting position itself.
    """
    path = forward.chain()
    node = backward.parent
    while node is not None:
        path.append(node.position)
        node = node.parent
    return path


@dataclass
class PhaseStatistics:
    """Statistics for one completed search phase."""
    label: str
    bound: float
    forward_expansions: int = 0
    backward_expansions: int = 0
    elapsed: float = 0.0
    best_length: float = math.inf

    @property
    def expansions(self) -> int:
        return self.forward_expansions + self.backward_expansions

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'bound': _json_number(self.bound),
            'forward_expansions': self.forward_expansions,
            'backward_expansions': self.backward_expansions,
            'elapsed_ms': self.elapsed * 1000.0,
            'best_length': _json_number(self.best_length),
        }


@dataclass
class SearchResult:
    """Result of a single engine invocation.

    Failure is represented as data: an infinite ``path_length`` with
    ``path`` set to None.
    """
    strategy: SearchStrategy
    path_length: float = math.inf
    path: Optional[List[Position]] = None
    phases: List[PhaseStatistics] = field(default_factory=list)
    starts: Tuple[Position, ...] = ()
    targets: Tuple[Position, ...] = ()
    heuristic: Optional[str] = None
    secondary_heuristic: Optional[str] = None
    termination_reason: str = "unknown"
    forward_explored: Sequence[Position] = ()
    backward_explored: Sequence[Position] = ()
    heuristic_stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return not math.isinf(self.path_length)

    @property
    def total_expansions(self) -> int:
        return sum(phase.expansions for phase in self.phases)

    @property
    def forward_expansions(self) -> int:
        return sum(phase.forward_expansions for phase in self.phases)

    @property
    def backward_expansions(self) -> int:
        return sum(phase.backward_expansions for phase in self.phases)

    @property
    def total_time(self) -> float:
        return sum(phase.elapsed for phase in self.phases)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to a JSON friendly dictionary."""
        return {
            'strategy': self.strategy.value,
            'heuristic': self.heuristic,
            'secondary_heuristic': self.secondary_heuristic,
            'found': self.found,
            'path_length': _json_number(self.path_length),
            'path': [list(p) for p in self.path] if self.path is not None else None,
            'starts': [list(p) for p in self.starts],
            'targets': [list(p) for p in self.targets],
            'termination_reason': self.termination_reason,
            'phases': [phase.to_dict() for phase in self.phases],
            'total_expansions': self.total_expansions,
            'total_time_ms': self.total_time * 1000.0,
            'forward_explored': len(self.forward_explored),
            'backward_explored': len(self.backward_explored),
            'heuristic_stats': self.heuristic_stats,
        }

    def __str__(self) -> str:
        if self.found:
            return str(int(self.path_length))
        return "inf"


def _json_number(value: float) -> Any:
    """Infinite values are written as None in JSON output."""
    if isinstance(value, float) and math.isinf(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
