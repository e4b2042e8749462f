"""Search algorithms for lattice search.

This module implements the uniform-cost, A*, bidirectional A* and iterative
deepening strategies together with their heuristic library.
"""

from .heuristics import (
    BaseHeuristic, BoundaryPruningHeuristic, create_heuristic, resolve_heuristic
)
from .astar import AStarSearcher, SearchConfig, create_astar_searcher
from .bidirectional import BidirectionalAStarSearcher
from .iterative import IterativeDeepeningSearcher
from .engine import LatticeSearchEngine, create_search_engine, find_path

__all__ = [
    'BaseHeuristic',
    'BoundaryPruningHeuristic',
    'create_heuristic',
    'resolve_heuristic',
    'AStarSearcher',
    'SearchConfig',
    'create_astar_searcher',
    'BidirectionalAStarSearcher',
    'IterativeDeepeningSearcher',
    'LatticeSearchEngine',
    'create_search_engine',
    'find_path',
]
