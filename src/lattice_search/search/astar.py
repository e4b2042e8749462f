"""A* graph search over an implicit grid.

This module holds the machinery shared by the single-direction and the
bidirectional searchers: search configuration, runtime budget, per-side
state and the admission rules for generated nodes.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from lattice_search.core.data_models import (
    Node, PhaseStatistics, Position, SearchResult, SearchStrategy, join_chains
)
from lattice_search.search.frontier import ClosedMap, PriorityFrontier
from lattice_search.search.heuristics import BaseHeuristic, ZeroHeuristic
from lattice_search.search.neighbors import NeighborGenerator, NodeFactory, ObstaclePredicate

logger = logging.getLogger(__name__)


@dataclass
class SearchConfig:
    """Configuration for lattice search."""
    collapse_tunnels: bool = False  # Walk forced corridors as one step
    max_tunnel_length: int = 64
    max_expansions: Optional[int] = None  # None means unbounded
    max_seconds: Optional[float] = None

    @classmethod
    def from_config(cls, cfg: Any) -> "SearchConfig":
        """Build a SearchConfig from the ``search`` section of a Hydra config."""
        if cfg is None or 'search' not in cfg:
            return cls()
        section = cfg.search
        limits = section.get('limits', None) or {}
        max_expansions = limits.get('max_expansions', None)
        max_seconds = limits.get('max_seconds', None)
        return cls(
            collapse_tunnels=bool(section.get('collapse_tunnels', False)),
            max_tunnel_length=int(section.get('max_tunnel_length', 64)),
            max_expansions=int(max_expansions) if max_expansions is not None else None,
            max_seconds=float(max_seconds) if max_seconds is not None else None,
        )


class SearchBudget:
    """Step-count and wall-clock limits checked between expansions."""

    def __init__(self, config: SearchConfig):
        self.max_expansions = config.max_expansions
        self.max_seconds = config.max_seconds
        self.started = time.perf_counter()

    def exceeded(self, expansions: int) -> Optional[str]:
        """Return the termination reason once a limit is hit, else None."""
        if self.max_expansions is not None and expansions >= self.max_expansions:
            return "expansion_limit"
        if (self.max_seconds is not None
                and time.perf_counter() - self.started >= self.max_seconds):
            return "time_limit"
        return None


class SideState(Enum):
    ACTIVE = "active"
    REFINE = "refine"  # may improve known entries, never adds new positions
    DONE = "done"


class Admission(Enum):
    REJECTED = 0
    ADMITTED = 1
    MEETING = 2


@dataclass
class SearchSide:
    """State of one search direction."""
    name: str
    heuristic: BaseHeuristic
    own: Tuple[Position, ...]
    opposite: Tuple[Position, ...]
    is_forward: bool = True
    frontier: PriorityFrontier = field(default_factory=PriorityFrontier)
    closed: ClosedMap = field(default_factory=ClosedMap)
    state: SideState = SideState.ACTIVE
    expansions: int = 0
    pruned: int = 0

    @property
    def done(self) -> bool:
        return self.state is SideState.DONE

    def finish(self) -> None:
        self.state = SideState.DONE
        self.frontier.clear()

    def estimate(self, predicate: ObstaclePredicate, position: Position,
                 parent: Optional[Node]) -> float:
        return self.heuristic(predicate, position, parent, self.own, self.opposite)


class AStarSearcher:
    """Single-direction A* graph search.

    The targets are held in a static backward closed map that is never
    expanded; a generated node landing on a target is a meeting with cost g.
    """

    strategy = SearchStrategy.ASTAR
    searches_backward = False

    def __init__(self, predicate: ObstaclePredicate, config: Optional[SearchConfig] = None):
        """Initialize searcher.

        Args:
            predicate: Obstacle predicate, True means blocked
            config: Search configuration parameters
        """
        self.predicate = predicate
        self.config = config or SearchConfig()
        self.neighbors = NeighborGenerator(predicate)
        self._reset()

    def _reset(self) -> None:
        self.factory = NodeFactory()
        self.neighbors.predicate_calls = 0
        self.best_length = math.inf
        self.meeting: Optional[Tuple[Node, Node]] = None
        self.corridor_steps = 0
        self._phase_label = "search"
        self._phase_mark = (time.perf_counter(), 0, 0)

    @property
    def found(self) -> bool:
        return not math.isinf(self.best_length)

    def search(self, starts: Sequence[Position], targets: Sequence[Position],
               heuristic: BaseHeuristic,
               secondary: Optional[BaseHeuristic] = None) -> SearchResult:
        """Run the search.

        Args:
            starts: Free start positions
            targets: Free target positions
            heuristic: Forward heuristic
            secondary: Backward heuristic, used only when searching backward

        Returns:
            SearchResult with the best length, path and phase statistics
        """
        self._reset()
        self.budget = SearchBudget(self.config)
        forward = SearchSide("forward", heuristic, tuple(starts), tuple(targets))
        backward = SearchSide("backward", secondary or ZeroHeuristic(), tuple(targets),
                              tuple(starts), is_forward=False)
        if not self.searches_backward:
            backward.state = SideState.DONE

        phases: List[PhaseStatistics] = []
        self._seed(forward, backward)
        if self.best_length == 0:
            reason = "found"
        else:
            reason = self._run(forward, backward, phases)
        self._close_phase(phases, forward, backward)

        path = join_chains(*self.meeting) if self.meeting is not None else None
        return SearchResult(
            strategy=self.strategy,
            path_length=self.best_length,
            path=path,
            phases=phases,
            starts=forward.own,
            targets=backward.own,
            heuristic=heuristic.name,
            secondary_heuristic=backward.heuristic.name if self.searches_backward else None,
            termination_reason=reason,
            forward_explored=forward.closed.positions(),
            backward_explored=backward.closed.positions() if self.searches_backward else (),
            heuristic_stats=self._heuristic_stats(forward, backward),
        )

    def _seed(self, forward: SearchSide, backward: SearchSide) -> None:
        for position in forward.own:
            node = self.factory.seed(position, forward.estimate(self.predicate, position, None))
            forward.closed.put(node)
            forward.frontier.push(node)

        for position in backward.own:
            h = backward.estimate(self.predicate, position, None) if self.searches_backward else 0.0
            node = self.factory.seed(position, h)
            backward.closed.put(node)
            if self.searches_backward:
                backward.frontier.push(node)
            meeting = forward.closed.get(position)
            if meeting is not None and self.best_length > 0:
                self._record_meeting(forward, meeting, node)

    def _run(self, forward: SearchSide, backward: SearchSide,
             phases: List[PhaseStatistics]) -> str:
        while True:
            node = forward.frontier.pop_authoritative(forward.closed)
            if node is None or node.bounded_f >= self.best_length:
                forward.finish()
                return "found" if self.found else "exhausted"

            limit = self.budget.exceeded(forward.expansions)
            if limit is not None:
                logger.warning(f"A* search stopped early: {limit}")
                return limit

            forward.expansions += 1
            self._expand(forward, backward, node)

    def _expand(self, side: SearchSide, other: SearchSide, node: Node) -> None:
        for position in self.neighbors.open_positions(node):
            child = self._make_child(side, node, position)
            if child is not None:
                self._admit(side, other, child)

    def _make_child(self, side: SearchSide, parent: Node, position: Position) -> Optional[Node]:
        h = side.estimate(self.predicate, position, parent)
        if math.isinf(h):
            side.pruned += 1
            return None
        return self.factory.child(parent, position, h)

    def _admit(self, side: SearchSide, other: SearchSide, child: Node) -> None:
        """Offer a child to its side, walking forced corridors when enabled.

        Corridor cells are expanded in place: they enter the closed map and
        count as expansions, and only the last admitted cell is queued.
        """
        steps = 0
        while True:
            outcome = self._offer(side, other, child)
            if outcome is Admission.REJECTED:
                return
            if (outcome is Admission.MEETING or not self.config.collapse_tunnels
                    or steps >= self.config.max_tunnel_length):
                break
            forced = self.neighbors.forced_step(child)
            if forced is None:
                break
            side.expansions += 1
            self.corridor_steps += 1
            steps += 1
            successor = self._make_child(side, child, forced)
            if successor is None:
                return
            child = successor
        side.frontier.push(child)

    def _offer(self, side: SearchSide, other: SearchSide, child: Node) -> Admission:
        if child.bounded_f >= self.best_length:
            return Admission.REJECTED

        meeting = other.closed.get(child.position)
        if meeting is not None and child.g + meeting.g < self.best_length:
            self._record_meeting(side, child, meeting)

        current = side.closed.get(child.position)
        if current is None:
            if side.state is SideState.REFINE:
                return Admission.REJECTED
        elif child.g >= current.g:
            return Admission.REJECTED

        side.closed.put(child)
        return Admission.MEETING if meeting is not None else Admission.ADMITTED

    def _record_meeting(self, side: SearchSide, node: Node, other_node: Node) -> None:
        self.best_length = node.g + other_node.g
        self.meeting = (node, other_node) if side.is_forward else (other_node, node)
        logger.debug(f"New best path length {self.best_length} meeting at {node.position}")

    def _close_phase(self, phases: List[PhaseStatistics], forward: SearchSide,
                     backward: SearchSide) -> None:
        now = time.perf_counter()
        started, forward_mark, backward_mark = self._phase_mark
        phases.append(PhaseStatistics(
            label=self._phase_label,
            bound=self.best_length,
            forward_expansions=forward.expansions - forward_mark,
            backward_expansions=backward.expansions - backward_mark,
            elapsed=now - started,
            best_length=self.best_length,
        ))
        self._phase_mark = (now, forward.expansions, backward.expansions)

    def _heuristic_stats(self, forward: SearchSide, backward: SearchSide) -> dict:
        stats = {
            'forward': forward.heuristic.get_stats(),
            'forward_pruned': forward.pruned,
            'corridor_steps': self.corridor_steps,
            'superseded': forward.closed.superseded + backward.closed.superseded,
            'nodes_created': self.factory.created,
            'predicate_calls': self.neighbors.predicate_calls,
            'frontier_peak': max(forward.frontier.max_size, backward.frontier.max_size),
        }
        if self.searches_backward:
            stats['backward'] = backward.heuristic.get_stats()
            stats['backward_pruned'] = backward.pruned
        return stats


def create_astar_searcher(predicate: ObstaclePredicate,
                          collapse_tunnels: bool = False,
                          max_expansions: Optional[int] = None) -> AStarSearcher:
    """Factory function to create an A* searcher with custom configuration.

    Args:
        predicate: Obstacle predicate
        collapse_tunnels: Walk forced corridors as one step
        max_expansions: Optional expansion budget

    Returns:
        Configured AStarSearcher instance
    """
    config = SearchConfig(collapse_tunnels=collapse_tunnels, max_expansions=max_expansions)
    return AStarSearcher(predicate, config)
