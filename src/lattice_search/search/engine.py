"""Search engine entry point.

The engine scrubs the endpoint sets against the obstacle predicate, resolves
heuristics and dispatches to one of the four strategies. Every failure is
reported through the result (infinite length, no path).
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from omegaconf import OmegaConf

from lattice_search.core.data_models import Position, SearchResult, SearchStrategy
from lattice_search.search.astar import AStarSearcher, SearchConfig
from lattice_search.search.bidirectional import BidirectionalAStarSearcher
from lattice_search.search.heuristics import HeuristicLike, ZeroHeuristic, resolve_heuristic
from lattice_search.search.iterative import IterativeDeepeningSearcher
from lattice_search.search.neighbors import ObstaclePredicate

logger = logging.getLogger(__name__)


class LatticeSearchEngine:
    """Shortest path engine over an implicit 4-connected grid.

    An engine instance owns all mutable search state of its runs, so
    parallel comparisons need one engine per combination.
    """

    def __init__(self, predicate: ObstaclePredicate,
                 starts: Iterable[Position],
                 targets: Iterable[Position],
                 config: Optional[SearchConfig] = None,
                 heuristic_options: Optional[Dict[str, Dict[str, Any]]] = None):
        """Initialize engine.

        Args:
            predicate: Obstacle predicate, True means blocked or out of bounds
            starts: Ordered start positions
            targets: Ordered target positions
            config: Search configuration parameters
            heuristic_options: Constructor options for heuristics created by name
        """
        self.predicate = predicate
        self.config = config or SearchConfig()
        self.heuristic_options = heuristic_options or {}
        self.starts = self._scrub(starts, "start")
        self.targets = self._scrub(targets, "target")

    def _scrub(self, positions: Iterable[Position], role: str) -> Tuple[Position, ...]:
        usable: List[Position] = []
        for raw in positions:
            position = (int(raw[0]), int(raw[1]))
            if self.predicate(position):
                logger.warning(f"Obstacle detected on {list(position)}. Removing {role} location.")
                continue
            if position in usable:
                continue
            usable.append(position)
        return tuple(usable)

    def solve(self, strategy: Union[str, SearchStrategy],
              heuristic: HeuristicLike = None,
              secondary: HeuristicLike = None) -> SearchResult:
        """Run one search.

        Args:
            strategy: Strategy or strategy name
            heuristic: Primary heuristic (name, instance or function); required
                for every strategy except DFID
            secondary: Backward heuristic for bidirectional A*, zero if omitted

        Returns:
            SearchResult

        Raises:
            ValueError: If the strategy is unknown or a required heuristic is missing
        """
        strategy = SearchStrategy.parse(strategy)
        primary = resolve_heuristic(heuristic, self.heuristic_options)
        backward = resolve_heuristic(secondary, self.heuristic_options)

        if strategy is SearchStrategy.DFID:
            primary = ZeroHeuristic()
        elif primary is None:
            raise ValueError(f"Strategy {strategy.value} requires a primary heuristic")
        if strategy is SearchStrategy.BIDIRECTIONAL_ASTAR and backward is None:
            backward = ZeroHeuristic()
        elif strategy is not SearchStrategy.BIDIRECTIONAL_ASTAR:
            backward = None

        if strategy is SearchStrategy.BIDIRECTIONAL_ASTAR:
            for estimate in (primary, backward):
                if not estimate.consistent:
                    logger.warning(f"Heuristic {estimate.name} is not consistent; "
                                   f"bidirectional A* may return a longer than optimal path")

        if not self.starts or not self.targets:
            logger.info(f"No usable {'start' if not self.starts else 'target'} positions; "
                        f"no path")
            return SearchResult(
                strategy=strategy,
                starts=self.starts,
                targets=self.targets,
                heuristic=primary.name,
                secondary_heuristic=backward.name if backward is not None else None,
                termination_reason="no_endpoints",
            )

        logger.info(f"Running {strategy.value} search with heuristic {primary.name}"
                    + (f"/{backward.name}" if backward is not None else ""))
        searcher = self._create_searcher(strategy)
        result = searcher.search(self.starts, self.targets, primary, backward)

        length = "inf" if math.isinf(result.path_length) else int(result.path_length)
        logger.info(f"Search completed: path length {length} || "
                    f"nodes explored {result.total_expansions} || "
                    f"time {result.total_time * 1000:.2f} ms || {result.termination_reason}")
        return result

    def _create_searcher(self, strategy: SearchStrategy):
        if strategy in (SearchStrategy.DFID, SearchStrategy.ASTAR_ID):
            return IterativeDeepeningSearcher(self.predicate, self.config, strategy)
        if strategy is SearchStrategy.ASTAR:
            return AStarSearcher(self.predicate, self.config)
        return BidirectionalAStarSearcher(self.predicate, self.config)


def create_search_engine(predicate: ObstaclePredicate,
                         starts: Iterable[Position],
                         targets: Iterable[Position],
                         cfg: Any = None) -> LatticeSearchEngine:
    """Factory function to create an engine from a Hydra configuration.

    Args:
        predicate: Obstacle predicate
        starts: Start positions
        targets: Target positions
        cfg: Loaded configuration, or None for defaults

    Returns:
        Configured LatticeSearchEngine
    """
    options: Dict[str, Dict[str, Any]] = {}
    if cfg is not None and 'heuristics' in cfg:
        options = OmegaConf.to_container(cfg.heuristics, resolve=True) or {}
    return LatticeSearchEngine(predicate, starts, targets,
                               config=SearchConfig.from_config(cfg),
                               heuristic_options=options)


def find_path(predicate: ObstaclePredicate,
              starts: Iterable[Position],
              targets: Iterable[Position],
              strategy: Union[str, SearchStrategy] = SearchStrategy.ASTAR,
              heuristic: HeuristicLike = "manhattan",
              secondary: HeuristicLike = None,
              config: Optional[SearchConfig] = None) -> SearchResult:
    """Convenience wrapper running a single search."""
    engine = LatticeSearchEngine(predicate, starts, targets, config=config)
    return engine.solve(strategy, heuristic, secondary)
