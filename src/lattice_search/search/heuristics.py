"""Heuristic library for lattice search.

Every heuristic is called as ``h(predicate, position, parent, own, opposite)``
and returns a non-negative estimate of the remaining cost, or +inf to signal
that the position can be pruned. ``own`` holds the endpoints the calling side
searches from and ``opposite`` the endpoints it searches towards.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Sequence, Type, Union

from lattice_search.core.data_models import Node, Position, manhattan
from lattice_search.search.baseline import flood_fill
from lattice_search.search.boundary import BoundaryTrace, BoundaryTracer
from lattice_search.search.neighbors import ObstaclePredicate

logger = logging.getLogger(__name__)


class BaseHeuristic(ABC):
    """Abstract base class for heuristics."""

    def __init__(self, name: str):
        """Initialize heuristic.

        Args:
            name: Name of the heuristic
        """
        self.name = name
        self.computation_count = 0
        self.total_computation_time = 0.0
        self.prune_count = 0

    @abstractmethod
    def compute(self, predicate: ObstaclePredicate, position: Position,
                parent: Optional[Node], own: Sequence[Position],
                opposite: Sequence[Position]) -> float:
        """Compute heuristic value.

        Args:
            predicate: Obstacle predicate, True means blocked
            position: Position being evaluated
            parent: Node the position was generated from, None for seeds
            own: Endpoints of the calling side
            opposite: Endpoints of the other side

        Returns:
            Estimated remaining cost, or inf to prune
        """
        pass

    def __call__(self, predicate: ObstaclePredicate, position: Position,
                 parent: Optional[Node], own: Sequence[Position],
                 opposite: Sequence[Position]) -> float:
        """Compute heuristic with timing and statistics."""
        start_time = time.perf_counter()
        value = self.compute(predicate, position, parent, own, opposite)
        self.computation_count += 1
        self.total_computation_time += time.perf_counter() - start_time
        return value

    @property
    def consistent(self) -> bool:
        """Whether the estimate is admissible and consistent on unit grids."""
        return False

    def reset_stats(self) -> None:
        self.computation_count = 0
        self.total_computation_time = 0.0
        self.prune_count = 0

    def get_stats(self) -> Dict[str, Any]:
        """Get computation statistics."""
        avg_time = (self.total_computation_time / self.computation_count
                    if self.computation_count > 0 else 0.0)

        return {
            'name': self.name,
            'computation_count': self.computation_count,
            'total_time': self.total_computation_time,
            'average_time_us': avg_time * 1000000,
            'prune_count': self.prune_count,
        }


class ZeroHeuristic(BaseHeuristic):
    """Always 0; turns A* into uniform-cost search."""

    def __init__(self):
        super().__init__("zero")

    def compute(self, predicate, position, parent, own, opposite) -> float:
        return 0.0

    @property
    def consistent(self) -> bool:
        return True


class EuclideanHeuristic(BaseHeuristic):
    """Straight-line distance to the nearest opposite endpoint."""

    def __init__(self):
        super().__init__("euclidean")

    def compute(self, predicate, position, parent, own, opposite) -> float:
        best = math.inf
        x, y = position
        for ex, ey in opposite:
            dx = x - ex
            dy = y - ey
            best = min(best, math.sqrt(dx * dx + dy * dy))
        return best

    @property
    def consistent(self) -> bool:
        return True


class ManhattanHeuristic(BaseHeuristic):
    """L1 distance to the nearest opposite endpoint."""

    def __init__(self):
        super().__init__("manhattan")

    def compute(self, predicate, position, parent, own, opposite) -> float:
        return nearest_manhattan(position, opposite)

    @property
    def consistent(self) -> bool:
        return True


class EqualizedManhattanHeuristic(BaseHeuristic):
    """Manhattan distance reduced in favour of balanced progress.

    For every (own endpoint s, opposite endpoint e) pair the Manhattan
    distance from the position p to e is lowered by half of
    |s - e|^2 / (|p - e|^2 + |s - p|^2), a ratio bounded by 2. The result
    is clamped at 0. Not guaranteed to be admissible.
    """

    def __init__(self):
        super().__init__("manhattan_equalized")

    def compute(self, predicate, position, parent, own, opposite) -> float:
        best = math.inf
        for start in own:
            for end in opposite:
                span = _squared_distance(start, end)
                if span == 0:
                    return 0.0
                ratio = span / (_squared_distance(position, end)
                                + _squared_distance(start, position))
                best = min(best, manhattan(position, end) - 0.5 * ratio)
        if math.isinf(best):
            return best
        return max(0.0, best)


class BreadthFirstHeuristic(BaseHeuristic):
    """0 on an opposite endpoint and 1 everywhere else."""

    def __init__(self):
        super().__init__("breadth_first")

    def compute(self, predicate, position, parent, own, opposite) -> float:
        if not opposite:
            return math.inf
        return 0.0 if position in opposite else 1.0

    @property
    def consistent(self) -> bool:
        return True


class BoundaryPruningHeuristic(BaseHeuristic):
    """Manhattan estimate that prunes dead-end pockets.

    After each step the local wall outline is traced (see
    :class:`BoundaryTracer`). If the outline closes around the new position
    and no opposite endpoint has a non-zero winding number, the position is
    pruned with +inf. With ``verify_pocket`` enabled a bounded flood fill
    must also confirm that the region behind the closing segment holds no
    opposite endpoint before the prune is reported.

    The instance keeps the most recent trace in ``last_trace``; it must not
    be shared between concurrently running searches.
    """

    def __init__(self, probe_limit: int = 15, trace_factor: int = 6,
                 verify_pocket: bool = True, verify_limit: int = 4096):
        super().__init__("boundary_pruning")
        self.tracer = BoundaryTracer(probe_limit=probe_limit, trace_factor=trace_factor)
        self.verify_pocket = verify_pocket
        self.verify_limit = verify_limit
        self.last_trace: Optional[BoundaryTrace] = None
        self.rejected_prunes = 0

    def compute(self, predicate, position, parent, own, opposite) -> float:
        estimate = nearest_manhattan(position, opposite)
        self.last_trace = None
        if parent is None or not opposite:
            return estimate

        trace = self.tracer.trace(predicate, position, parent.position, opposite)
        self.last_trace = trace
        if trace is None or not trace.closed or trace.encloses_endpoint:
            return estimate

        if self.verify_pocket and not self._pocket_is_empty(predicate, trace, opposite):
            self.rejected_prunes += 1
            logger.debug(f"Pocket at {position} not confirmed by flood fill")
            return estimate

        self.prune_count += 1
        return math.inf

    def _pocket_is_empty(self, predicate: ObstaclePredicate, trace: BoundaryTrace,
                         opposite: Sequence[Position]) -> bool:
        segment = set(trace.segment)
        region = flood_fill(trace.position,
                            lambda cell: cell in segment or predicate(cell),
                            limit=self.verify_limit)
        if region is None:
            return False
        return not any(endpoint in region for endpoint in opposite)

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats['rejected_prunes'] = self.rejected_prunes
        return stats


class CallableHeuristic(BaseHeuristic):
    """Adapter for plain functions with the heuristic signature."""

    def __init__(self, function: Callable[..., float], name: Optional[str] = None):
        super().__init__(name or getattr(function, '__name__', 'custom'))
        self.function = function

    def compute(self, predicate, position, parent, own, opposite) -> float:
        return float(self.function(predicate, position, parent, own, opposite))


HEURISTICS: Dict[str, Type[BaseHeuristic]] = {
    'zero': ZeroHeuristic,
    'euclidean': EuclideanHeuristic,
    'manhattan': ManhattanHeuristic,
    'manhattan_equalized': EqualizedManhattanHeuristic,
    'breadth_first': BreadthFirstHeuristic,
    'boundary_pruning': BoundaryPruningHeuristic,
}

_ALIASES = {
    'null': 'zero',
    'none': 'zero',
    'sld': 'euclidean',
    'mh': 'manhattan',
    'mheq': 'manhattan_equalized',
    'bfs': 'breadth_first',
    'nook': 'boundary_pruning',
    'pruning': 'boundary_pruning',
}

HeuristicLike = Union[None, str, BaseHeuristic, Callable[..., float]]


def canonical_heuristic_name(name: str) -> str:
    """Normalise a heuristic name or alias.

    Raises:
        ValueError: If the name is unknown
    """
    key = name.strip().lower().replace('-', '_')
    key = _ALIASES.get(key, key)
    if key not in HEURISTICS:
        raise ValueError(f"Unknown heuristic: {name}")
    return key


def create_heuristic(name: str, **options) -> BaseHeuristic:
    """Factory function to create a heuristic by name.

    Args:
        name: Registered name or alias
        **options: Constructor options, only used by heuristics that take any

    Returns:
        A fresh heuristic instance
    """
    heuristic_class = HEURISTICS[canonical_heuristic_name(name)]
    if options and heuristic_class is BoundaryPruningHeuristic:
        return heuristic_class(**options)
    return heuristic_class()


def resolve_heuristic(heuristic: HeuristicLike,
                      options: Optional[Dict[str, Dict[str, Any]]] = None) -> Optional[BaseHeuristic]:
    """Turn a name, instance or plain function into a heuristic instance.

    Args:
        heuristic: Name, BaseHeuristic, callable or None
        options: Per-heuristic constructor options keyed by canonical name

    Returns:
        Heuristic instance, or None when ``heuristic`` is None
    """
    if heuristic is None or isinstance(heuristic, BaseHeuristic):
        return heuristic
    if isinstance(heuristic, str):
        name = canonical_heuristic_name(heuristic)
        return create_heuristic(name, **((options or {}).get(name) or {}))
    if callable(heuristic):
        return CallableHeuristic(heuristic)
    raise ValueError(f"Cannot use {heuristic!r} as a heuristic")


def nearest_manhattan(position: Position, endpoints: Sequence[Position]) -> float:
    best = math.inf
    for endpoint in endpoints:
        distance = manhattan(position, endpoint)
        if distance < best:
            best = distance
    return best


def _squared_distance(a: Position, b: Position) -> int:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy
