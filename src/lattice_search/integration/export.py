"""Result export: JSON summaries, CSV tables and PNG renders."""

import csv
import json
import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from lattice_search.core.data_models import Position, SearchResult

logger = logging.getLogger(__name__)

# Cell codes of a rendered result, later codes win.
EMPTY = 0
OBSTACLE = 1
BACKWARD = 2
FORWARD = 3
PATH = 4

PALETTE = np.array([
    [0xff, 0xff, 0xff],  # empty
    [0x03, 0x07, 0x1e],  # obstacle
    [0x06, 0xd6, 0xa0],  # backward explored
    [0x11, 0x8a, 0xb2],  # forward explored
    [0xd0, 0x00, 0x00],  # path
], dtype=np.uint8)

CSV_HEADER = [
    "Basic Info Labels:", "Basic Info:", "", "Path X", "Path Y", "",
    "Phase", "Bound", "Forward Nodes Explored", "Backward Nodes Explored",
    "Time Taken (ms)",
]


def render_bounds(result: SearchResult) -> Tuple[int, int, int, int]:
    """Endpoint bounding box padded by its own extent plus 5 on every side.

    Returns:
        (min_x, min_y, max_x, max_y), inclusive
    """
    endpoints = list(result.starts) + list(result.targets)
    if not endpoints:
        raise ValueError("Cannot render a result without endpoints")
    xs = [p[0] for p in endpoints]
    ys = [p[1] for p in endpoints]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
    pad_x = max_x - min_x + 5
    pad_y = max_y - min_y + 5
    return min_x - pad_x, min_y - pad_y, max_x + pad_x, max_y + pad_y


def render_result(result: SearchResult, predicate: Callable[[Position], bool]) -> np.ndarray:
    """Render a result into an array of cell codes indexed [y, x].

    Args:
        result: Search result to render
        predicate: Obstacle predicate the result was computed on

    Returns:
        uint8 array of EMPTY/OBSTACLE/BACKWARD/FORWARD/PATH codes
    """
    min_x, min_y, max_x, max_y = render_bounds(result)
    width = max_x - min_x + 1
    height = max_y - min_y + 1
    codes = np.full((height, width), EMPTY, dtype=np.uint8)

    for y in range(height):
        for x in range(width):
            if predicate((min_x + x, min_y + y)):
                codes[y, x] = OBSTACLE

    _paint(codes, result.backward_explored, BACKWARD, min_x, min_y)
    _paint(codes, result.forward_explored, FORWARD, min_x, min_y)
    if result.path is not None:
        _paint(codes, result.path, PATH, min_x, min_y)
    return codes


def _paint(codes: np.ndarray, positions: Iterable[Position], value: int,
           min_x: int, min_y: int) -> None:
    height, width = codes.shape
    for px, py in positions:
        x, y = px - min_x, py - min_y
        if 0 <= x < width and 0 <= y < height and codes[y, x] != OBSTACLE:
            codes[y, x] = value


def to_rgb(codes: np.ndarray) -> np.ndarray:
    """Map cell codes to an RGB image array."""
    return PALETTE[codes]


def result_rows(result: SearchResult) -> List[List[Any]]:
    """Tabular layout: summary column, path column pair and phase columns."""
    summary = [
        ("Total Nodes Explored:", result.total_expansions),
        ("Total Time Taken (ms):", round(result.total_time * 1000.0, 3)),
        ("Optimal Path Length:", "inf" if not result.found else int(result.path_length)),
        ("Strategy:", result.strategy.value),
        ("Heuristic:", result.heuristic or ""),
        ("Secondary Heuristic:", result.secondary_heuristic or ""),
        ("Termination:", result.termination_reason),
    ]
    path = result.path or []
    rows = []
    for i in range(max(len(summary), len(path), len(result.phases))):
        row: List[Any] = list(summary[i]) if i < len(summary) else ["", ""]
        row.append("")
        row.extend(path[i] if i < len(path) else ("", ""))
        row.append("")
        if i < len(result.phases):
            phase = result.phases[i]
            bound = "inf" if math.isinf(phase.bound) else phase.bound
            row.extend([phase.label, bound, phase.forward_expansions,
                        phase.backward_expansions, round(phase.elapsed * 1000.0, 3)])
        else:
            row.extend([""] * 5)
        rows.append(row)
    return rows


def save_result_csv(result: SearchResult, output_path: Union[str, Path]) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        writer.writerows(result_rows(result))
    return output_path


def save_result_json(result: SearchResult, output_path: Union[str, Path],
                     extra: Optional[Dict[str, Any]] = None) -> Path:
    """Save a result summary to a JSON file.

    Args:
        result: Result to save
        output_path: Output file path
        extra: Additional top-level fields

    Returns:
        Path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = result.to_dict()
    if extra:
        payload.update(extra)
    with open(output_path, 'w') as f:
        json.dump(payload, f, indent=2)
    return output_path


def save_result_bundle(result: SearchResult,
                       predicate: Callable[[Position], bool],
                       folder: Union[str, Path],
                       name: Optional[str] = None,
                       json_output: bool = True,
                       csv_output: bool = True,
                       render_output: bool = True) -> Dict[str, Path]:
    """Write the JSON, CSV and PNG render of one result into a folder.

    Returns:
        Mapping of artifact kind to written path
    """
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    name = name or f"{result.strategy.value}_{result.heuristic or 'zero'}"
    written: Dict[str, Path] = {}
    if json_output:
        written['json'] = save_result_json(result, folder / f"{name}.json")
    if csv_output:
        written['csv'] = save_result_csv(result, folder / f"{name}.csv")
    if render_output and (result.starts or result.targets):
        render_path = folder / f"{name}.png"
        plt.imsave(render_path, to_rgb(render_result(result, predicate)))
        written['render'] = render_path
    logger.info(f"Saved {', '.join(sorted(written))} for {name} to {folder}")
    return written
