"""Command-line interface for lattice search.

This module provides CLI commands for solving boards and comparing strategies.
"""

from .main import main_cli
from .commands import solve_command, compare_command, config_command, verify_command
from .utils import setup_logging, save_results

__all__ = [
    'main_cli',
    'solve_command',
    'compare_command',
    'config_command',
    'verify_command',
    'setup_logging',
    'save_results'
]
