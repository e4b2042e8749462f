"""CLI utility functions."""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from lattice_search.core.data_models import SearchResult


def setup_logging(level: int = logging.INFO,
                  format_string: Optional[str] = None) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level
        format_string: Custom format string
    """
    if format_string is None:
        if level <= logging.DEBUG:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Hydra logs its own composition steps at INFO
    logging.getLogger('hydra').setLevel(logging.WARNING)


def save_results(results: Union[Dict[str, Any], List[Any]],
                 output_path: Union[str, Path],
                 pretty: bool = True) -> None:
    """Save results to JSON file.

    Args:
        results: Results dictionary or list of dictionaries
        output_path: Output file path
        pretty: Whether to pretty-print JSON
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    def convert_numpy(obj):
        if hasattr(obj, 'tolist'):
            return obj.tolist()
        elif isinstance(obj, dict):
            return {k: convert_numpy(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [convert_numpy(item) for item in obj]
        else:
            return obj

    with open(output_path, 'w') as f:
        json.dump(convert_numpy(results), f, indent=2 if pretty else None)


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 0.001:
        return f"{seconds*1000000:.1f}µs"
    elif seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}m {secs:.1f}s"


def format_length(value: float) -> str:
    return "inf" if math.isinf(value) else str(int(value))


def print_result_summary(result: SearchResult) -> None:
    """Print a short human-readable summary of one search."""
    heuristics = result.heuristic or "zero"
    if result.secondary_heuristic:
        heuristics += f"/{result.secondary_heuristic}"
    print(f"Strategy: {result.strategy.value} ({heuristics})")
    print(f"Path length: {format_length(result.path_length)}")
    print(f"Nodes expanded: {result.total_expansions} "
          f"(forward {result.forward_expansions}, backward {result.backward_expansions})")
    print(f"Phases: {len(result.phases)}")
    print(f"Termination: {result.termination_reason}")
    print(f"Computation time: {format_duration(result.total_time)}")


def print_comparison_table(results: List[SearchResult]) -> None:
    """Print one line per result for side-by-side comparison."""
    header = f"{'strategy':<22}{'heuristics':<36}{'length':>8}{'expanded':>10}{'time':>12}"
    print(header)
    print("-" * len(header))
    for result in results:
        heuristics = result.heuristic or "zero"
        if result.secondary_heuristic:
            heuristics += f"/{result.secondary_heuristic}"
        print(f"{result.strategy.value:<22}{heuristics:<36}"
              f"{format_length(result.path_length):>8}{result.total_expansions:>10}"
              f"{format_duration(result.total_time):>12}")
