"""Configuration management for lattice search.

This module provides Hydra-based configuration loading with command line
switches applied as overrides.
"""

from .config_manager import (
    ConfigManager, load_config, switch_overrides, config_from_overrides, save_config
)
from .validators import validate_config, ConfigValidationError

__all__ = [
    'ConfigManager',
    'load_config',
    'switch_overrides',
    'config_from_overrides',
    'save_config',
    'validate_config',
    'ConfigValidationError'
]
