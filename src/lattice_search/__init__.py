"""Shortest path search over implicit 2D grids.

Exposes the search engine, the strategy selector and the heuristic library.
"""

from lattice_search.core.data_models import (
    Node, PhaseStatistics, Position, SearchResult, SearchStrategy
)
from lattice_search.search.engine import LatticeSearchEngine, create_search_engine, find_path
from lattice_search.search.heuristics import create_heuristic

__version__ = "0.1.0"

__all__ = [
    'Node',
    'PhaseStatistics',
    'Position',
    'SearchResult',
    'SearchStrategy',
    'LatticeSearchEngine',
    'create_search_engine',
    'find_path',
    'create_heuristic',
]
