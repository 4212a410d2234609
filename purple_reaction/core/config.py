"""
Configuration management for the purple-reaction package.

Provides centralized configuration loading and management with support for:
- YAML configuration files
- Environment variable overrides
- Default configuration values
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = 'PURPLE_REACTION_'
ENV_SECTION_SEPARATOR = '__'

class ConfigManager:
    """
    Configuration manager for the purple-reaction package.

    Supports loading configuration from multiple sources with precedence:
    1. Environment variables (PURPLE_REACTION_<SECTION>__<KEY>)
    2. Explicitly provided config file
    3. User config file (~/.purple_reaction/config.yaml)
    4. Project config file (config.yaml in the working directory)
    5. Package default config
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None, search_default_locations: bool = True):
        """
        Initialize the configuration manager.

        Args:
            config_file: Optional path to configuration file
            search_default_locations: Also look in the user and project locations
        """
        self._config_cache = None
        self._config_file = Path(config_file) if config_file else None
        self._search_default_locations = search_default_locations
        self._default_config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get the default configuration."""
        return {
            'global': {
                'log_level': 'INFO',
                'log_file': None,
            },
            'run': {
                'trial_count': 10,
                'min_delay': 2.0,
                'max_delay': 5.0,
                'seed': None,
            },
            'policy': {
                # Presses in the first N ms of the wait phase are ignored.
                # 0 means every press before the stimulus is a false start.
                'false_start_grace_ms': 0.0,
            },
            'display': {
                'fullscreen': True,
                'window_size': [800, 600],
                'wait_color': [0, 0, 0],
                'stimulus_color': [255, 255, 255],
                'event_pump_interval': 0.0005,
                'vsync': True,
            },
            'input': {
                'keyboard': True,
                'mouse': True,
                'joystick': True,
            },
            'simulation': {
                'mean_reaction_ms': 250.0,
                'sd_reaction_ms': 40.0,
                'min_reaction_ms': 100.0,
                'false_start_probability': 0.05,
            },
            'output': {
                'csv_precision': 6,
                'export_dir': '.',
            },
        }

    def _find_config_files(self) -> List[Path]:
        """Find all configuration files in order of precedence."""
        config_files = []

        if self._config_file:
            if self._config_file.exists():
                config_files.append(self._config_file)
            else:
                logger.warning(f"Config file not found: {self._config_file}")

        if not self._search_default_locations:
            return config_files

        user_config = Path.home() / '.purple_reaction' / 'config.yaml'
        if user_config.exists():
            config_files.append(user_config)

        project_config = Path.cwd() / 'config.yaml'
        if project_config.exists():
            config_files.append(project_config)

        return config_files

    def _load_config_file(self, config_file: Path) -> Dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_file}: {e}")
            return {}
        if not isinstance(config, dict):
            logger.warning(f"Ignoring config file {config_file}: top level is not a mapping")
            return {}
        logger.debug(f"Loaded config from {config_file}")
        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = copy.deepcopy(value)

        return result

    def _load_env_overrides(self) -> Dict[str, Any]:
        """Load configuration overrides from environment variables."""
        env_config = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            # PURPLE_REACTION_RUN__TRIAL_COUNT -> ['run', 'trial_count']
            config_path = key[len(ENV_PREFIX):].lower().split(ENV_SECTION_SEPARATOR)
            if not all(config_path):
                logger.warning(f"Ignoring malformed environment override: {key}")
                continue

            current = env_config
            for part in config_path[:-1]:
                current = current.setdefault(part, {})
            current[config_path[-1]] = parse_scalar(value)

        return env_config

    def load_config(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Load the complete configuration from all sources.

        Args:
            force_reload: Force reloading even if cached

        Returns:
            Complete configuration dictionary
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        config = copy.deepcopy(self._default_config)

        config_files = self._find_config_files()
        for config_file in reversed(config_files):
            config = self._merge_configs(config, self._load_config_file(config_file))

        env_config = self._load_env_overrides()
        if env_config:
            config = self._merge_configs(config, env_config)
            logger.debug("Applied environment variable overrides")

        self._config_cache = config
        logger.debug(f"Configuration loaded from {len(config_files)} files")

        return config

    def get_config(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-separated path.

        Args:
            path: Dot-separated path (e.g., 'run.min_delay')
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        value = self.load_config()
        for key in path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set_config(self, path: str, value: Any):
        """
        Set a configuration value by dot-separated path.

        Args:
            path: Dot-separated path (e.g., 'run.trial_count')
            value: Value to set
        """
        config = self.load_config()
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value
        self._config_cache = config

    def save_config(self, config_file: Optional[Union[str, Path]] = None):
        """
        Save the current configuration to a file.

        Args:
            config_file: Path to save config to. If None, uses user config location.
        """
        if config_file is None:
            config_file = Path.home() / '.purple_reaction' / 'config.yaml'
        else:
            config_file = Path(config_file)

        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.load_config(), f, default_flow_style=False, indent=2)
        logger.info(f"Configuration saved to {config_file}")

def parse_scalar(value: str) -> Any:
    """Convert an environment or command-line string to int, float, bool or None."""
    lowered = value.strip().lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    if lowered in ('none', 'null', ''):
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value

# Global configuration manager instance
_config_manager = ConfigManager()

def load_config(config_file: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load configuration from file or use default."""
    global _config_manager
    if config_file:
        _config_manager = ConfigManager(config_file)
    return _config_manager.load_config()

def get_config(path: str, default: Any = None) -> Any:
    """Get a configuration value by dot-separated path."""
    return _config_manager.get_config(path, default)

def reset_config():
    """Drop the cached configuration and any loaded config file."""
    global _config_manager
    _config_manager = ConfigManager()
