"""Eight-direction compass primitives used by boundary tracing.

Directions are unit steps (dx, dy) with components in {-1, 0, 1}. One
rotation step is an eighth of a turn; counter-clockwise means E -> NE -> N
with y pointing up.
"""

from typing import Tuple

from lattice_search.core.data_models import Position

Direction = Tuple[int, int]

COMPASS: Tuple[Direction, ...] = (
    (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1)
)


def _counter_clockwise_once(direction: Direction) -> Direction:
    dx, dy = direction
    product = dx * dy
    if product == -1:
        return (dx, 0)
    if product == 1:
        return (0, dy)
    if dx == 0:
        return (-dy, dy)
    return (dx, dx)


def _clockwise_once(direction: Direction) -> Direction:
    dx, dy = direction
    product = dx * dy
    if product == -1:
        return (0, dy)
    if product == 1:
        return (dx, 0)
    if dx == 0:
        return (dy, dy)
    return (dx, -dx)


def rotate_counter_clockwise(direction: Direction, steps: int = 1) -> Direction:
    """Rotate a compass direction counter-clockwise by ``steps`` eighth turns."""
    for _ in range(steps % 8):
        direction = _counter_clockwise_once(direction)
    return direction


def rotate_clockwise(direction: Direction, steps: int = 1) -> Direction:
    """Rotate a compass direction clockwise by ``steps`` eighth turns."""
    for _ in range(steps % 8):
        direction = _clockwise_once(direction)
    return direction


def invert(direction: Direction) -> Direction:
    return (-direction[0], -direction[1])


def step(position: Position, direction: Direction) -> Position:
    return (position[0] + direction[0], position[1] + direction[1])


def relative_quadrant(centre: Position, arm: Position) -> int:
    """Quadrant (0-3) of ``arm`` as seen from ``centre``.

    Quadrants are numbered clockwise starting with the upper right one
    (y up), so a clockwise sweep counts positive. Points on an axis through the centre fall into the quadrant on the
    non-negative side.
    """
    if arm[0] < centre[0]:
        return 2 if arm[1] < centre[1] else 3
    return 1 if arm[1] < centre[1] else 0


def quadrant_jump(previous: int, current: int) -> int:
    """Signed quadrant change between two consecutive traced points.

    A jump across two quadrants keeps its raw sign (+2 or -2).
    """
    delta = current - previous
    if delta == 0:
        return 0
    if delta in (1, -3):
        return 1
    if delta in (2, -2):
        return delta
    return -1
