"""Bidirectional A* search.

Two frontiers grow from the start and target sets and alternate one
expansion each. Every generated node is checked against the opposite
closed map; a hit yields a candidate path whose cost is the sum of both g
values. A side whose cheapest remaining node cannot beat the best length
is finished, and the other side drops into only-refine mode, in which it
may still improve known entries or find meetings but never admits a new
position. The run ends when both sides are finished.
"""

import logging
from typing import List, Optional

from lattice_search.core.data_models import PhaseStatistics, SearchStrategy
from lattice_search.search.astar import (
    AStarSearcher, SearchConfig, SearchSide, SideState
)
from lattice_search.search.neighbors import ObstaclePredicate

logger = logging.getLogger(__name__)


class BidirectionalAStarSearcher(AStarSearcher):
    """Meet-in-the-middle A* with a forward and a backward frontier."""

    strategy = SearchStrategy.BIDIRECTIONAL_ASTAR
    searches_backward = True

    def _run(self, forward: SearchSide, backward: SearchSide,
             phases: List[PhaseStatistics]) -> str:
        while not (forward.done and backward.done):
            for side, other in ((forward, backward), (backward, forward)):
                if side.done:
                    continue

                node = side.frontier.pop_authoritative(side.closed)
                if node is None or node.bounded_f >= self.best_length:
                    side.finish()
                    if not self.found:
                        logger.debug(f"{side.name} side exhausted without meeting")
                        return "exhausted"
                    if other.state is SideState.ACTIVE:
                        other.state = SideState.REFINE
                        self._close_phase(phases, forward, backward)
                        self._phase_label = "refine"
                        logger.debug(f"{side.name} side finished at length "
                                     f"{self.best_length}, {other.name} side refining")
                    continue

                limit = self.budget.exceeded(forward.expansions + backward.expansions)
                if limit is not None:
                    logger.warning(f"Bidirectional search stopped early: {limit}")
                    return limit

                side.expansions += 1
                self._expand(side, other, node)
        return "found"


def create_bidirectional_searcher(predicate: ObstaclePredicate,
                                  config: Optional[SearchConfig] = None) -> BidirectionalAStarSearcher:
    """Factory function to create a bidirectional A* searcher."""
    return BidirectionalAStarSearcher(predicate, config)
