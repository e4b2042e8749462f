"""Local obstacle boundary tracing for pocket detection.

Starting from the last step of a search (anchor -> position), the tracer
probes perpendicular to the step on both sides for a wall. When both probes
hit, it follows the 8-connected wall outline from the first hit until it
reaches the second one. The closing segment between the two hits runs
through the anchor, so the traced outline plus that segment forms a loop
around the position that was just stepped into.

For every endpoint a winding number is accumulated by counting quadrant
changes of the traced point relative to the endpoint. An endpoint with a
non-zero winding number lies inside the loop.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from lattice_search.core.data_models import Position
from lattice_search.search.compass import (
    invert, quadrant_jump, relative_quadrant, rotate_counter_clockwise, step
)

logger = logging.getLogger(__name__)


@dataclass
class BoundaryTrace:
    """Outcome of one tracing attempt."""
    anchor: Position
    position: Position
    segment: List[Position]
    walls: List[Position] = field(default_factory=list)
    windings: List[int] = field(default_factory=list)
    closed: bool = False

    @property
    def encloses_endpoint(self) -> bool:
        return any(w != 0 for w in self.windings)

    @property
    def probe_depth(self) -> int:
        return len(self.segment) - 1


class BoundaryTracer:
    """Traces the wall outline around the cell in front of an anchor.

    Args:
        probe_limit: Total number of free cells the two perpendicular probes
            may cross before giving up
        trace_factor: Trace steps allowed per probed free cell
    """

    def __init__(self, probe_limit: int = 15, trace_factor: int = 6):
        self.probe_limit = probe_limit
        self.trace_factor = trace_factor

    def trace(self, predicate: Callable[[Position], bool],
              position: Position, anchor: Position,
              endpoints: Sequence[Position]) -> Optional[BoundaryTrace]:
        """Attempt to close a loop around ``position``.

        Returns:
            A BoundaryTrace, or None when the probes do not find walls on
            both sides within the probe limit
        """
        heading = (position[0] - anchor[0], position[1] - anchor[1])
        side = rotate_counter_clockwise(heading, 2)

        segment = [anchor]
        hits: List[Position] = []
        misses = 0
        direction = side
        for _ in range(2):
            cell = anchor
            while misses < self.probe_limit:
                cell = step(cell, direction)
                if predicate(cell):
                    hits.append(cell)
                    break
                segment.append(cell)
                misses += 1
            direction = invert(direction)

        if len(hits) < 2:
            return None
        max_steps = misses * self.trace_factor
        if max_steps == 0:
            return None

        cursor, goal = hits
        result = BoundaryTrace(anchor=anchor, position=position, segment=segment,
                               walls=[cursor], windings=[0] * len(endpoints))
        quadrants = [relative_quadrant(e, anchor) for e in endpoints]
        self._advance(result, quadrants, endpoints, cursor)

        reference = direction
        turning = 0
        steps = 0
        while steps < max_steps:
            direction = invert(direction)
            turning += 4
            rotations = 0
            while rotations < 7:
                direction = rotate_counter_clockwise(direction)
                turning -= 1
                candidate = step(cursor, direction)
                if predicate(candidate):
                    cursor = candidate
                    result.walls.append(cursor)
                    self._advance(result, quadrants, endpoints, cursor)
                    if cursor == goal:
                        # Orientation check: one full turn around the pocket.
                        direction = invert(direction)
                        turning += 4
                        while direction != reference:
                            direction = rotate_counter_clockwise(direction)
                            turning -= 1
                        result.closed = turning == 8
                    break
                rotations += 1
            if rotations == 7 or result.closed:
                break
            steps += 1

        if result.closed:
            self._advance(result, quadrants, endpoints, anchor)
        return result

    @staticmethod
    def _advance(result: BoundaryTrace, quadrants: List[int],
                 endpoints: Sequence[Position], point: Position) -> None:
        for i, endpoint in enumerate(endpoints):
            quadrant = relative_quadrant(endpoint, point)
            result.windings[i] += quadrant_jump(quadrants[i], quadrant)
            quadrants[i] = quadrant
