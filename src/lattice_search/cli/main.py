"""Main CLI entry point for lattice search."""

import sys
import argparse
import logging
from typing import List, Optional

from . import commands
from .utils import setup_logging

STRATEGY_CHOICES = ['dfid', 'astar_id', 'astar', 'bidirectional_astar']


def _add_board_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        'board',
        type=str,
        help='Board file (0 = free cell) or preset: open:WxH, slit:WxH, '
             'double-slit:WxH, nook, random:WxH:DENSITY:SEED, blocked'
    )
    subparser.add_argument(
        '--start', '-s',
        action='append',
        required=True,
        metavar='X,Y',
        help='Start position (repeatable)'
    )
    subparser.add_argument(
        '--target', '-t',
        action='append',
        required=True,
        metavar='X,Y',
        help='Target position (repeatable)'
    )
    subparser.add_argument(
        '--export-dir',
        type=str,
        help='Write JSON, CSV, PNG render and config.yaml into this folder'
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog='lattice-search',
        description='Lattice Search - shortest paths over implicit 2D grids',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lattice-search solve open:11x11 -s 0,0 -t 10,10 --strategy astar
  lattice-search compare slit:101x101 -s 35,20 -t 46,80
  lattice-search config show
  lattice-search verify-pruning --trials 20
  lattice-search verify-pruning --raw
        """
    )

    # Global options
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Configuration overrides (e.g., "search.strategy=astar search.collapse_tunnels=true")'
    )

    parser.add_argument(
        '--config-dir',
        type=str,
        help='Configuration directory (default: conf/ at the project root)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Increase verbosity (use -v or -vv)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except results'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output file for results (JSON format)'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='COMMAND'
    )

    # Solve command
    solve_parser = subparsers.add_parser(
        'solve',
        help='Find a shortest path on a board',
        description='Run one strategy with one heuristic pair'
    )
    _add_board_arguments(solve_parser)
    solve_parser.add_argument(
        '--strategy',
        choices=STRATEGY_CHOICES,
        help='Search strategy (default: from configuration)'
    )
    solve_parser.add_argument(
        '--heuristic',
        type=str,
        help='Primary heuristic: zero, euclidean, manhattan, manhattan_equalized, '
             'breadth_first, boundary_pruning'
    )
    solve_parser.add_argument(
        '--secondary',
        type=str,
        help='Backward heuristic for bidirectional_astar (default: from configuration)'
    )
    solve_parser.add_argument(
        '--collapse-tunnels',
        action='store_true',
        help='Walk forced corridors as a single step'
    )
    solve_parser.add_argument(
        '--max-expansions',
        type=int,
        help='Stop after this many node expansions'
    )

    # Compare command
    compare_parser = subparsers.add_parser(
        'compare',
        help='Compare strategy/heuristic combinations',
        description='Run every combination listed under compare.runs on the same board'
    )
    _add_board_arguments(compare_parser)

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Configuration management',
        description='Show or validate configuration'
    )
    config_subparsers = config_parser.add_subparsers(
        dest='config_action',
        help='Configuration actions'
    )
    config_subparsers.add_parser('show', help='Show current configuration')
    config_subparsers.add_parser('validate', help='Validate configuration')

    # Verify command
    verify_parser = subparsers.add_parser(
        'verify-pruning',
        help='Fuzz the pruning heuristic for unsafe prunes',
        description='Check every step on seeded random boards against a flood fill'
    )
    verify_parser.add_argument(
        '--trials',
        type=int,
        default=10,
        help='Number of random boards (default: 10)'
    )
    verify_parser.add_argument(
        '--size',
        type=int,
        default=16,
        help='Board width and height (default: 16)'
    )
    verify_parser.add_argument(
        '--density',
        type=float,
        default=0.35,
        help='Obstacle density (default: 0.35)'
    )
    verify_parser.add_argument(
        '--seed',
        type=int,
        default=0,
        help='Base random seed (default: 0)'
    )
    verify_parser.add_argument(
        '--raw',
        action='store_true',
        help='Check the boundary tracer without flood fill confirmation'
    )

    return parser


def main_cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.quiet:
        log_level = logging.ERROR
    elif parsed_args.verbose == 0:
        log_level = logging.WARNING
    elif parsed_args.verbose == 1:
        log_level = logging.INFO
    else:
        log_level = logging.DEBUG

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        if not parsed_args.command:
            parser.print_help()
            return 1

        if parsed_args.command == 'solve':
            return commands.solve_command(parsed_args)
        if parsed_args.command == 'compare':
            return commands.compare_command(parsed_args)
        if parsed_args.command == 'config':
            return commands.config_command(parsed_args)
        if parsed_args.command == 'verify-pruning':
            return commands.verify_command(parsed_args)

        logger.error(f"Unknown command: {parsed_args.command}")
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def main() -> None:
    """Entry point for console script."""
    sys.exit(main_cli())


if __name__ == '__main__':
    main()
