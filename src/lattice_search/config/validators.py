"""Configuration validation for lattice search."""

import logging
from omegaconf import DictConfig

from lattice_search.core.data_models import SearchStrategy
from lattice_search.search.heuristics import canonical_heuristic_name

logger = logging.getLogger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


def validate_config(config: DictConfig) -> None:
    """Validate the complete configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validate_search_config(config.get('search', {}))
        validate_heuristics_config(config.get('heuristics', {}))
        validate_compare_config(config.get('compare', {}))
        validate_output_config(config.get('output', {}))
        validate_logging_config(config.get('logging', {}))

        logger.debug("Configuration validation passed")

    except ConfigValidationError:
        raise
    except Exception as e:
        raise ConfigValidationError(f"Configuration validation failed: {e}")


def _check_strategy(value, key: str) -> None:
    try:
        SearchStrategy.parse(value)
    except ValueError:
        raise ConfigValidationError(f"{key} must be a known search strategy, got {value}")


def _check_heuristic(value, key: str, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not isinstance(value, str):
        raise ConfigValidationError(f"{key} must be a heuristic name, got {value}")
    try:
        canonical_heuristic_name(value)
    except ValueError:
        raise ConfigValidationError(f"{key} must be a known heuristic, got {value}")


def _check_positive_or_null(value, key: str, types) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, types) or value <= 0:
        raise ConfigValidationError(f"{key} must be positive or null, got {value}")


def validate_search_config(search_config: DictConfig) -> None:
    """Validate search configuration section.

    Args:
        search_config: Search configuration section
    """
    if not search_config:
        return

    _check_strategy(search_config.get('strategy', 'astar'), 'search.strategy')
    _check_heuristic(search_config.get('heuristic', 'manhattan'), 'search.heuristic')
    _check_heuristic(search_config.get('secondary_heuristic', None),
                     'search.secondary_heuristic', optional=True)

    collapse = search_config.get('collapse_tunnels', False)
    if not isinstance(collapse, bool):
        raise ConfigValidationError(f"search.collapse_tunnels must be boolean, got {collapse}")

    tunnel = search_config.get('max_tunnel_length', 64)
    if isinstance(tunnel, bool) or not isinstance(tunnel, int) or tunnel < 1:
        raise ConfigValidationError(
            f"search.max_tunnel_length must be integer >= 1, got {tunnel}"
        )

    limits = search_config.get('limits', {}) or {}
    _check_positive_or_null(limits.get('max_expansions', None),
                            'search.limits.max_expansions', int)
    _check_positive_or_null(limits.get('max_seconds', None),
                            'search.limits.max_seconds', (int, float))


def validate_heuristics_config(heuristics_config: DictConfig) -> None:
    """Validate per-heuristic options.

    Args:
        heuristics_config: Heuristics configuration section
    """
    if not heuristics_config:
        return

    for name in heuristics_config:
        _check_heuristic(name, f"heuristics.{name}")

    pruning = heuristics_config.get('boundary_pruning', {}) or {}
    for key, default in (('probe_limit', 15), ('trace_factor', 6), ('verify_limit', 4096)):
        value = pruning.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigValidationError(
                f"heuristics.boundary_pruning.{key} must be integer >= 1, got {value}"
            )
    verify = pruning.get('verify_pocket', True)
    if not isinstance(verify, bool):
        raise ConfigValidationError(
            f"heuristics.boundary_pruning.verify_pocket must be boolean, got {verify}"
        )
    if not verify:
        # Raw tracing can close a loop that a 4-connected path escapes.
        raise ConfigValidationError(
            "heuristics.boundary_pruning.verify_pocket=false can prune reachable "
            "endpoints; raw tracing is only available through verify-pruning --raw"
        )


def validate_compare_config(compare_config: DictConfig) -> None:
    """Validate the list of strategy/heuristic combinations to compare.

    Args:
        compare_config: Compare configuration section
    """
    if not compare_config:
        return

    runs = compare_config.get('runs', []) or []
    for i, run in enumerate(runs):
        _check_strategy(run.get('strategy', None), f"compare.runs[{i}].strategy")
        strategy = SearchStrategy.parse(run.get('strategy'))
        _check_heuristic(run.get('heuristic', None), f"compare.runs[{i}].heuristic",
                         optional=strategy is SearchStrategy.DFID)
        _check_heuristic(run.get('secondary_heuristic', None),
                         f"compare.runs[{i}].secondary_heuristic", optional=True)


def validate_output_config(output_config: DictConfig) -> None:
    """Validate output configuration section.

    Args:
        output_config: Output configuration section
    """
    if not output_config:
        return

    directory = output_config.get('directory', 'outputs')
    if not isinstance(directory, str) or not directory:
        raise ConfigValidationError(f"output.directory must be a non-empty string, got {directory}")

    for key in ('json', 'csv', 'render'):
        value = output_config.get(key, True)
        if not isinstance(value, bool):
            raise ConfigValidationError(f"output.{key} must be boolean, got {value}")


def validate_logging_config(logging_config: DictConfig) -> None:
    """Validate logging configuration section.

    Args:
        logging_config: Logging configuration section
    """
    if not logging_config:
        return

    level = logging_config.get('level', 'INFO')
    if str(level).upper() not in LOG_LEVELS:
        raise ConfigValidationError(f"logging.level must be one of {LOG_LEVELS}, got {level}")
