"""CLI command implementations."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from omegaconf import DictConfig, OmegaConf

from lattice_search.config import (
    ConfigValidationError, config_from_overrides, load_config, save_config,
    switch_overrides, validate_config
)
from lattice_search.core.data_models import SearchResult
from lattice_search.integration.boards import board_from_spec, parse_position
from lattice_search.integration.export import save_result_bundle
from lattice_search.integration.verification import fuzz_pruning_safety
from lattice_search.search.engine import create_search_engine
from lattice_search.search.heuristics import BoundaryPruningHeuristic

from .utils import print_comparison_table, print_result_summary, save_results

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_RUNS: List[Dict[str, Optional[str]]] = [
    {'strategy': 'bidirectional_astar', 'heuristic': 'manhattan', 'secondary_heuristic': 'manhattan'},
    {'strategy': 'astar', 'heuristic': 'manhattan', 'secondary_heuristic': None},
    {'strategy': 'bidirectional_astar', 'heuristic': 'zero', 'secondary_heuristic': 'zero'},
    {'strategy': 'astar', 'heuristic': 'zero', 'secondary_heuristic': None},
    {'strategy': 'astar_id', 'heuristic': 'manhattan', 'secondary_heuristic': None},
]


def load_cli_config(args, switches: Optional[Dict[str, Any]] = None) -> DictConfig:
    """Load the Hydra configuration named by the global CLI options.

    Command switches are appended to the ``--config`` overrides. A missing
    configuration directory leaves a configuration made of the overrides
    alone.

    Args:
        args: Parsed command line arguments
        switches: Dotted configuration keys set by command options

    Returns:
        Validated configuration
    """
    overrides = args.config.split() if getattr(args, 'config', None) else []
    overrides += switch_overrides(switches or {})
    try:
        return load_config(overrides=overrides, config_dir=getattr(args, 'config_dir', None))
    except FileNotFoundError as e:
        logger.warning(f"{e}; using built-in defaults")
        return config_from_overrides(overrides)


def _setting(cfg: DictConfig, key: str, default: Any) -> Any:
    return OmegaConf.select(cfg, key, default=default)


def _endpoints(values: List[str]) -> List:
    return [parse_position(value) for value in values or []]


def _export(cfg: DictConfig, result: SearchResult, predicate, folder,
            name: Optional[str] = None) -> None:
    save_result_bundle(
        result, predicate, folder, name=name,
        json_output=bool(_setting(cfg, 'output.json', True)),
        csv_output=bool(_setting(cfg, 'output.csv', True)),
        render_output=bool(_setting(cfg, 'output.render', True)),
    )


def solve_command(args) -> int:
    """Handle solve command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        cfg = load_cli_config(args, {
            'search.strategy': args.strategy,
            'search.heuristic': args.heuristic,
            'search.secondary_heuristic': args.secondary,
            'search.collapse_tunnels': True if args.collapse_tunnels else None,
            'search.limits.max_expansions': args.max_expansions,
        })
        predicate = board_from_spec(args.board)
        starts = _endpoints(args.start)
        targets = _endpoints(args.target)

        strategy = _setting(cfg, 'search.strategy', 'bidirectional_astar')
        heuristic = _setting(cfg, 'search.heuristic', 'manhattan')
        secondary = _setting(cfg, 'search.secondary_heuristic', None)

        engine = create_search_engine(predicate, starts, targets, cfg)
        result = engine.solve(strategy, heuristic, secondary)

        if args.export_dir:
            _export(cfg, result, predicate, args.export_dir)
            save_config(cfg, Path(args.export_dir) / "config.yaml")

        if args.output:
            save_results(result.to_dict(), args.output)
            logger.info(f"Results saved to {args.output}")

        if not args.quiet:
            print_result_summary(result)
            if result.path is not None:
                print("Path: " + " ".join(f"{x},{y}" for x, y in result.path))

        return 0 if result.found else 1

    except Exception as e:
        logger.error(f"Solve command failed: {e}")
        return 1


def compare_command(args) -> int:
    """Handle compare command.

    Every configured (strategy, heuristic) combination runs on its own engine.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        cfg = load_cli_config(args)
        predicate = board_from_spec(args.board)
        starts = _endpoints(args.start)
        targets = _endpoints(args.target)

        runs = _setting(cfg, 'compare.runs', None)
        runs = OmegaConf.to_container(runs) if runs is not None else DEFAULT_COMPARISON_RUNS

        results: List[SearchResult] = []
        for run in runs:
            engine = create_search_engine(predicate, starts, targets, cfg)
            result = engine.solve(run['strategy'], run.get('heuristic'),
                                  run.get('secondary_heuristic'))
            results.append(result)
            if args.export_dir:
                name = f"{result.strategy.value}_{result.heuristic}"
                if result.secondary_heuristic:
                    name += f"_{result.secondary_heuristic}"
                _export(cfg, result, predicate, args.export_dir, name=name)

        if args.export_dir:
            save_config(cfg, Path(args.export_dir) / "config.yaml")

        if args.output:
            save_results([result.to_dict() for result in results], args.output)
            logger.info(f"Results saved to {args.output}")

        if not args.quiet:
            print_comparison_table(results)

        return 0

    except Exception as e:
        logger.error(f"Compare command failed: {e}")
        return 1


def config_command(args) -> int:
    """Handle config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        if args.config_action == 'show':
            overrides = args.config.split() if args.config else []
            try:
                config = load_config(overrides=overrides, config_dir=args.config_dir)
            except FileNotFoundError:
                print("No configuration directory found.")
                return 1
            print("Current Configuration:")
            print("=" * 50)
            print(OmegaConf.to_yaml(config, resolve=True))
            return 0

        elif args.config_action == 'validate':
            try:
                overrides = args.config.split() if args.config else []
                config = load_config(overrides=overrides, config_dir=args.config_dir,
                                     validate=False)
                validate_config(config)
                print("Configuration is valid")
                return 0
            except ConfigValidationError as e:
                print(f"Configuration validation failed: {e}")
                return 1

        else:
            print("Unknown config action")
            return 1

    except Exception as e:
        logger.error(f"Config command failed: {e}")
        return 1


def verify_command(args) -> int:
    """Handle verify-pruning command.

    With ``--raw`` the flood fill confirmation of each prune is switched off,
    so the boundary tracer is checked on its own.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code, 1 if any unsafe prune was found
    """
    try:
        cfg = load_cli_config(args)
        options = _setting(cfg, 'heuristics.boundary_pruning', None)
        options = dict(OmegaConf.to_container(options)) if options is not None else {}
        if args.raw:
            options['verify_pocket'] = False
        heuristic = BoundaryPruningHeuristic(**options)

        report = fuzz_pruning_safety(trials=args.trials, size=args.size,
                                     density=args.density, seed=args.seed,
                                     heuristic=heuristic)

        if args.output:
            save_results(report.to_dict(), args.output)

        if not args.quiet:
            print(f"Mode: {'raw tracing' if args.raw else 'flood fill confirmed'}")
            print(f"Boards checked: {report.boards}")
            print(f"Heuristic evaluations: {report.evaluations}")
            print(f"Prunes: {report.prunes}")
            print(f"Violations: {len(report.violations)}")

        return 0 if report.safe else 1

    except Exception as e:
        logger.error(f"Verify command failed: {e}")
        return 1
