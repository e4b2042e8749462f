"""Randomised checks of the boundary pruning heuristic.

A prune is safe when a flood fill from the pruned position, which may not
cross obstacles or the closing segment of the traced boundary, reaches no
opposite endpoint.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from lattice_search.core.data_models import Node, Position
from lattice_search.integration.boards import ArrayPredicate, random_board
from lattice_search.search.baseline import flood_fill
from lattice_search.search.heuristics import BoundaryPruningHeuristic
from lattice_search.search.neighbors import NEIGHBOR_OFFSETS

logger = logging.getLogger(__name__)


@dataclass
class PruningViolation:
    """A prune that hid a reachable endpoint."""
    board: str
    anchor: Position
    position: Position
    reachable: List[Position]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'board': self.board,
            'anchor': list(self.anchor),
            'position': list(self.position),
            'reachable': [list(p) for p in self.reachable],
        }


@dataclass
class PruningReport:
    """Aggregate outcome of a fuzzing run."""
    boards: int = 0
    evaluations: int = 0
    prunes: int = 0
    violations: List[PruningViolation] = field(default_factory=list)

    @property
    def safe(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            'boards': self.boards,
            'evaluations': self.evaluations,
            'prunes': self.prunes,
            'safe': self.safe,
            'violations': [v.to_dict() for v in self.violations],
        }


def reachable_endpoints(predicate, heuristic: BoundaryPruningHeuristic,
                        endpoints: Sequence[Position]) -> List[Position]:
    """Endpoints reachable from the last traced position without crossing its boundary."""
    trace = heuristic.last_trace
    if trace is None:
        return []
    segment = set(trace.segment)
    region = flood_fill(trace.position, lambda cell: cell in segment or predicate(cell))
    return [endpoint for endpoint in endpoints if endpoint in region]


def check_board(board: ArrayPredicate, endpoints: Sequence[Position],
                heuristic: Optional[BoundaryPruningHeuristic] = None,
                report: Optional[PruningReport] = None) -> PruningReport:
    """Evaluate the heuristic for every free cell and every step into it.

    Args:
        board: Bounded board to check
        endpoints: Opposite endpoints handed to the heuristic
        heuristic: Heuristic under test, a default instance if omitted
        report: Report to accumulate into

    Returns:
        The updated report
    """
    heuristic = heuristic or BoundaryPruningHeuristic()
    report = report or PruningReport()
    report.boards += 1
    endpoints = tuple(endpoints)
    own: Tuple[Position, ...] = ()

    for ax, ay in board.free_positions().tolist():
        anchor = (int(ax), int(ay))
        parent = Node(position=anchor, g=0, h=0.0, id=0)
        for dx, dy in NEIGHBOR_OFFSETS:
            position = (anchor[0] + dx, anchor[1] + dy)
            if board(position):
                continue
            report.evaluations += 1
            value = heuristic(board, position, parent, own, endpoints)
            if value != float('inf'):
                continue
            report.prunes += 1
            reachable = reachable_endpoints(board, heuristic, endpoints)
            if reachable:
                logger.error(f"Unsafe prune on {board.name}: {anchor} -> {position} "
                             f"hides {reachable}")
                report.violations.append(
                    PruningViolation(board.name, anchor, position, reachable)
                )
    return report


def fuzz_pruning_safety(trials: int = 10, size: int = 16, density: float = 0.35,
                        seed: int = 0, endpoints_per_board: int = 2,
                        heuristic: Optional[BoundaryPruningHeuristic] = None) -> PruningReport:
    """Run the pruning safety check on seeded random boards.

    Args:
        trials: Number of boards
        size: Board width and height
        density: Obstacle density
        seed: Base seed, board i uses seed + i
        endpoints_per_board: Opposite endpoints sampled per board
        heuristic: Heuristic under test, a default instance if omitted

    Returns:
        PruningReport over all boards
    """
    report = PruningReport()
    heuristic = heuristic or BoundaryPruningHeuristic()
    for trial in range(trials):
        board = random_board(size, size, density, seed=seed + trial)
        free = board.free_positions()
        if len(free) == 0:
            continue
        rng = np.random.default_rng(seed + trial)
        picks = rng.choice(len(free), size=min(endpoints_per_board, len(free)), replace=False)
        endpoints = [tuple(int(v) for v in free[i]) for i in picks]
        check_board(board, endpoints, heuristic, report)
    logger.info(f"Pruning fuzz: {report.boards} boards, {report.evaluations} evaluations, "
                f"{report.prunes} prunes, {len(report.violations)} violations")
    return report
