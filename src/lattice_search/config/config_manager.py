"""Hydra configuration loading for lattice search runs.

Settings live in ``conf/config.yaml`` at the project root. Command line
switches are expressed as Hydra override strings, so every run is described
by one composed and validated configuration, which is written next to the
exported results.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra
from omegaconf import DictConfig, OmegaConf

from .validators import validate_config

logger = logging.getLogger(__name__)


def default_config_dir() -> Path:
    """``conf`` directory at the project root."""
    return Path(__file__).parent.parent.parent.parent / "conf"


class ConfigManager:
    """Composes run configurations from a Hydra config directory."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Path to configuration directory. If None, uses default.

        Raises:
            FileNotFoundError: If the directory does not exist
        """
        if config_dir is None:
            config_dir = default_config_dir()

        self.config_dir = Path(config_dir).resolve()
        self.config: Optional[DictConfig] = None

        if not self.config_dir.exists():
            raise FileNotFoundError(f"Configuration directory not found: {self.config_dir}")

    def load_config(self,
                    config_name: str = "config",
                    overrides: Optional[List[str]] = None,
                    validate: bool = True) -> DictConfig:
        """Compose a configuration with Hydra overrides applied.

        Args:
            config_name: Name of the main config file (without .yaml)
            overrides: Hydra override strings such as ``search.strategy=astar``
            validate: Whether to validate the composed configuration

        Returns:
            Composed configuration
        """
        GlobalHydra.instance().clear()

        try:
            with initialize_config_dir(config_dir=str(self.config_dir), version_base=None):
                cfg = compose(config_name=config_name, overrides=overrides or [])
        except Exception as e:
            logger.error(f"Failed to compose {config_name} from {self.config_dir}: {e}")
            raise

        if validate:
            validate_config(cfg)
        self.config = cfg

        logger.info(f"Configuration loaded: {self.config_dir / config_name}.yaml")
        if overrides:
            logger.info(f"Applied overrides: {overrides}")
        return cfg


def load_config(config_name: str = "config",
                overrides: Optional[List[str]] = None,
                config_dir: Optional[Union[str, Path]] = None,
                validate: bool = True) -> DictConfig:
    """Compose a configuration from ``config_dir`` (the project ``conf`` by default)."""
    manager = ConfigManager(config_dir)
    return manager.load_config(config_name, overrides, validate)


def switch_overrides(switches: Dict[str, Any]) -> List[str]:
    """Turn command line switches into Hydra override strings.

    Switches whose value is None were not given and produce no override.

    Args:
        switches: Mapping of dotted configuration key to switch value

    Returns:
        Override strings in the order of ``switches``
    """
    overrides = []
    for key, value in switches.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        overrides.append(f"{key}={value}")
    return overrides


def config_from_overrides(overrides: List[str], validate: bool = True) -> DictConfig:
    """Build a configuration from override strings alone.

    Used when no configuration directory exists. Keys that are not given
    fall back to the defaults of the code that reads them.
    """
    cfg = OmegaConf.from_dotlist(list(overrides))
    if validate:
        validate_config(cfg)
    return cfg


def save_config(cfg: DictConfig, output_path: Union[str, Path]) -> Path:
    """Write the resolved configuration of a run as YAML.

    Returns:
        Path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(cfg, output_path, resolve=True)
    logger.info(f"Configuration saved to: {output_path}")
    return output_path
