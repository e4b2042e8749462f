"""Obstacle predicates for the search engine.

Boards are boolean numpy arrays indexed ``board[y][x]`` where True means
blocked. Positions outside the array count as blocked.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from lattice_search.core.data_models import Position

logger = logging.getLogger(__name__)


class ArrayPredicate:
    """Obstacle predicate backed by a boolean array."""

    def __init__(self, blocked: np.ndarray, name: str = "board"):
        """Initialize predicate.

        Args:
            blocked: 2D array, truthy cells are obstacles
            name: Label used in logs and exports
        """
        blocked = np.asarray(blocked, dtype=bool)
        if blocked.ndim != 2:
            raise ValueError(f"Board must be 2-dimensional, got shape {blocked.shape}")
        self.blocked = blocked
        self.name = name
        self.height, self.width = blocked.shape

    def __call__(self, position: Position) -> bool:
        x, y = position
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return True
        return bool(self.blocked[y, x])

    def free_positions(self) -> np.ndarray:
        """(x, y) coordinates of every free cell, row-major."""
        ys, xs = np.nonzero(~self.blocked)
        return np.stack([xs, ys], axis=1)

    @property
    def density(self) -> float:
        return float(self.blocked.mean()) if self.blocked.size else 0.0

    def __repr__(self) -> str:
        return f"ArrayPredicate({self.name}, {self.width}x{self.height})"


def blocked_everywhere(position: Position) -> bool:
    """Predicate that rejects every position."""
    return True


def open_board(width: int, height: int) -> ArrayPredicate:
    return ArrayPredicate(np.zeros((height, width), dtype=bool), name=f"open_{width}x{height}")


def slit_board(width: int, height: int, wall_y: Optional[int] = None,
               gap_x: Optional[int] = None) -> ArrayPredicate:
    """Board split by a horizontal wall with a single gap.

    Args:
        width: Board width
        height: Board height
        wall_y: Row of the wall, defaults to the middle row
        gap_x: Column of the gap, defaults to the middle column
    """
    wall_y = height // 2 if wall_y is None else wall_y
    gap_x = width // 2 if gap_x is None else gap_x
    blocked = np.zeros((height, width), dtype=bool)
    blocked[wall_y, :] = True
    blocked[wall_y, gap_x] = False
    return ArrayPredicate(blocked, name=f"slit_{width}x{height}")


def double_slit_board(width: int, height: int) -> ArrayPredicate:
    """Two walls whose gaps are offset, forcing a zig-zag path."""
    blocked = np.zeros((height, width), dtype=bool)
    upper, lower = height // 4, height // 2
    blocked[upper, :] = True
    blocked[upper, width // 2] = False
    blocked[lower, :] = True
    blocked[lower, width // 4] = False
    return ArrayPredicate(blocked, name=f"double_slit_{width}x{height}")


def nook_board(size: int = 51, density: float = 0.1, seed: int = 0) -> ArrayPredicate:
    """Board with long walls and dead-end nooks over light random noise."""
    rng = np.random.default_rng(seed)
    blocked = rng.random((size, size)) < density
    ys, xs = np.mgrid[0:size, 0:size]
    blocked &= ~((xs == 25) | (xs == 42) | (ys == 22) | (ys == 7))
    blocked |= (xs == 25) & (ys < 42)
    blocked |= (xs == 42) & (ys > 15)
    blocked |= (ys == 22) & (xs > 10) & (xs < 15)
    blocked |= (ys == 7) & (xs > 10) & (xs < 25)
    return ArrayPredicate(blocked, name=f"nook_{size}")


def random_board(width: int, height: int, density: float = 0.3,
                 seed: Optional[int] = None,
                 keep_free: Sequence[Position] = ()) -> ArrayPredicate:
    """Board with independently blocked cells.

    Args:
        width: Board width
        height: Board height
        density: Probability that a cell is blocked
        seed: Seed for numpy's default generator
        keep_free: Positions forced to stay open
    """
    if not 0.0 <= density <= 1.0:
        raise ValueError(f"density must be between 0 and 1, got {density}")
    rng = np.random.default_rng(seed)
    blocked = rng.random((height, width)) < density
    for x, y in keep_free:
        if 0 <= x < width and 0 <= y < height:
            blocked[y, x] = False
    return ArrayPredicate(blocked, name=f"random_{width}x{height}_{density}_{seed}")


def load_board_file(path: Union[str, Path]) -> ArrayPredicate:
    """Load a text board where '0' marks a free cell.

    Any other character is an obstacle and short rows are padded with
    obstacles.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file holds no rows
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Board file not found: {path}")
    rows = [line.rstrip("\r\n") for line in path.read_text().splitlines()]
    rows = [row for row in rows if row]
    if not rows:
        raise ValueError(f"Board file is empty: {path}")
    width = max(len(row) for row in rows)
    blocked = np.ones((len(rows), width), dtype=bool)
    for y, row in enumerate(rows):
        blocked[y, :len(row)] = np.array([c != '0' for c in row], dtype=bool)
    logger.info(f"Loaded board {path.name} ({width}x{len(rows)})")
    return ArrayPredicate(blocked, name=path.stem)


def save_board_file(board: ArrayPredicate, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["".join('1' if cell else '0' for cell in row) for row in board.blocked]
    path.write_text("\n".join(lines) + "\n")


def parse_size(text: str) -> Tuple[int, int]:
    """Parse 'WxH' into (width, height)."""
    try:
        width, height = (int(part) for part in text.lower().split("x"))
    except ValueError:
        raise ValueError(f"Invalid board size '{text}', expected WxH")
    if width <= 0 or height <= 0:
        raise ValueError(f"Board size must be positive, got '{text}'")
    return width, height


def parse_position(text: str) -> Position:
    """Parse 'x,y' into a position tuple."""
    try:
        x, y = (int(part) for part in text.split(","))
    except ValueError:
        raise ValueError(f"Invalid position '{text}', expected x,y")
    return (x, y)


def board_from_spec(spec: str):
    """Build a predicate from a preset spec or a board file path.

    Presets: ``open:WxH``, ``slit:WxH``, ``double-slit:WxH``, ``nook``,
    ``random:WxH:DENSITY:SEED`` and ``blocked``.
    """
    kind, _, rest = spec.partition(":")
    kind = kind.lower()
    args = rest.split(":") if rest else []
    if kind == "blocked":
        return blocked_everywhere
    if kind == "open":
        return open_board(*parse_size(args[0] if args else "21x21"))
    if kind == "slit":
        return slit_board(*parse_size(args[0] if args else "101x101"))
    if kind in ("double-slit", "double_slit"):
        return double_slit_board(*parse_size(args[0] if args else "101x101"))
    if kind == "nook":
        return nook_board()
    if kind == "random":
        width, height = parse_size(args[0] if args else "32x32")
        density = float(args[1]) if len(args) > 1 else 0.3
        seed = int(args[2]) if len(args) > 2 else 0
        return random_board(width, height, density, seed)
    return load_board_file(spec)
