"""Iterative deepening strategies (DFID and A*-ID).

Each pass is a depth-first tree search from the start seeds with a LIFO
frontier. A child is kept only while g + ceil(h) stays within the current
bound; the smallest value seen beyond the bound becomes the next bound.
Within a pass a per-pass closed map holds the best g per position and a
position is re-entered only with a strictly smaller g. Nothing is reused
across passes.
"""

import logging
import math
import time
from typing import List, Optional, Sequence, Tuple

from lattice_search.core.data_models import (
    Node, PhaseStatistics, Position, SearchResult, SearchStrategy, bounded_f, join_chains
)
from lattice_search.search.astar import SearchBudget, SearchConfig
from lattice_search.search.frontier import ClosedMap, StackFrontier
from lattice_search.search.heuristics import BaseHeuristic, ZeroHeuristic
from lattice_search.search.neighbors import NeighborGenerator, NodeFactory, ObstaclePredicate

logger = logging.getLogger(__name__)


class IterativeDeepeningSearcher:
    """Depth- or f-bounded iterative deepening search.

    DFID always uses the zero heuristic, which makes the bound a plain
    depth bound.
    """

    def __init__(self, predicate: ObstaclePredicate,
                 config: Optional[SearchConfig] = None,
                 strategy: SearchStrategy = SearchStrategy.ASTAR_ID):
        if strategy not in (SearchStrategy.DFID, SearchStrategy.ASTAR_ID):
            raise ValueError(f"{strategy.value} is not an iterative deepening strategy")
        self.predicate = predicate
        self.config = config or SearchConfig()
        self.strategy = strategy
        self.neighbors = NeighborGenerator(predicate)

    def search(self, starts: Sequence[Position], targets: Sequence[Position],
               heuristic: Optional[BaseHeuristic] = None,
               secondary: Optional[BaseHeuristic] = None) -> SearchResult:
        """Run passes with growing bounds until a target is reached.

        Args:
            starts: Free start positions
            targets: Free target positions
            heuristic: Heuristic for A*-ID, ignored by DFID
            secondary: Unused, accepted for a uniform searcher interface

        Returns:
            SearchResult with one phase record per pass
        """
        if self.strategy is SearchStrategy.DFID or heuristic is None:
            if heuristic is not None and not isinstance(heuristic, ZeroHeuristic):
                logger.debug(f"DFID ignores heuristic {heuristic.name}")
            heuristic = ZeroHeuristic()

        starts = tuple(starts)
        targets = tuple(targets)
        budget = SearchBudget(self.config)
        factory = NodeFactory()
        self.neighbors.predicate_calls = 0
        goals = ClosedMap()
        for position in targets:
            goals.put(factory.seed(position, 0.0))

        phases: List[PhaseStatistics] = []
        meeting: Optional[Tuple[Node, Node]] = None
        closed = ClosedMap()
        bound = 0
        total_expansions = 0
        pruned = 0
        frontier_peak = 0
        reason = "exhausted"

        while True:
            started = time.perf_counter()
            stack = StackFrontier()
            closed = ClosedMap()
            expansions = 0
            next_bound = math.inf
            limit = None

            for position in starts:
                node = factory.seed(position, heuristic(self.predicate, position, None,
                                                        starts, targets))
                goal = goals.get(position)
                if goal is not None:
                    meeting = (node, goal)
                    break
                closed.put(node)
                stack.push(node)

            while meeting is None and stack:
                node = stack.pop()
                if not closed.is_authoritative(node):
                    continue
                limit = budget.exceeded(total_expansions + expansions)
                if limit is not None:
                    break
                expansions += 1

                for position in self.neighbors.open_positions(node):
                    h = heuristic(self.predicate, position, node, starts, targets)
                    if math.isinf(h):
                        pruned += 1
                        continue
                    cost = bounded_f(node.g + 1, h)
                    if cost > bound:
                        if cost < next_bound:
                            next_bound = cost
                        continue

                    child = factory.child(node, position, h)
                    goal = goals.get(position)
                    if goal is not None:
                        meeting = (child, goal)
                        break
                    current = closed.get(position)
                    if current is None or child.g < current.g:
                        closed.put(child)
                        stack.push(child)

            frontier_peak = max(frontier_peak, stack.max_size)
            total_expansions += expansions
            best = meeting[0].g if meeting is not None else math.inf
            phases.append(PhaseStatistics(
                label="depth",
                bound=bound,
                forward_expansions=expansions,
                elapsed=time.perf_counter() - started,
                best_length=best,
            ))
            logger.debug(f"Pass with bound {bound} expanded {expansions} nodes")

            if meeting is not None:
                reason = "found"
                break
            if limit is not None:
                logger.warning(f"Iterative deepening stopped early: {limit}")
                reason = limit
                break
            if math.isinf(next_bound):
                reason = "exhausted"
                break
            bound = next_bound

        return SearchResult(
            strategy=self.strategy,
            path_length=meeting[0].g if meeting is not None else math.inf,
            path=join_chains(*meeting) if meeting is not None else None,
            phases=phases,
            starts=starts,
            targets=targets,
            heuristic=heuristic.name,
            termination_reason=reason,
            forward_explored=closed.positions(),
            heuristic_stats={
                'forward': heuristic.get_stats(),
                'forward_pruned': pruned,
                'nodes_created': factory.created,
                'predicate_calls': self.neighbors.predicate_calls,
                'frontier_peak': frontier_peak,
            },
        )
