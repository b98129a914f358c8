# etrace/utils/config.py - Configuration management
"""
Configuration management for etrace.
Loads configuration from YAML files and resolves the options used by the
event processors.
"""

import copy
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from etrace.collector.filters import ParsedFilter, parse_filters
from etrace.errors import ConfigurationError


class Config:
    """
    Configuration manager for etrace.

    Loads configuration from YAML files and provides access to settings.
    """

    DEFAULT_CONFIG = {
        'processing': {
            'http_stats_only': False,
            'http_latency_stats_only': False,
            'stats_only': False,
            'fields': [],
            'filters': [],
            'max_uri_length': 200,
        },
        'output': {
            'format': 'stdout',
            'path': None,
        }
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Failed to load config: {e}")
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if loaded_config is None:
            return
        if not isinstance(loaded_config, dict):
            raise ConfigurationError(f"Top level of {config_file} must be a mapping")

        # Merge with defaults
        self._merge_config(self.config, loaded_config)
        self.logger.info(f"Loaded configuration from {config_file}")

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'processing.max_uri_length')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'processing.http_stats_only')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)

    def to_yaml(self) -> str:
        """
        Render the configuration as YAML.

        Returns:
            YAML document
        """
        return yaml.safe_dump(self.config, default_flow_style=False, sort_keys=False)


@dataclass
class ProcessorOptions:
    """
    Options consumed by the event processors.
    """
    http_stats_only: bool = False
    http_latency_stats_only: bool = False
    stats_only: bool = False
    fields: List[str] = field(default_factory=list)
    parsed_filters: List[ParsedFilter] = field(default_factory=list)
    max_uri_length: int = 200

    @classmethod
    def from_config(cls, config: Config) -> 'ProcessorOptions':
        """
        Resolve processor options from a configuration.

        Args:
            config: Loaded configuration

        Returns:
            ProcessorOptions

        Raises:
            ConfigurationError: If a value has the wrong type or range
        """
        fields = cls._as_list(config.get('processing.fields'), 'processing.fields')
        filters = cls._as_list(config.get('processing.filters'), 'processing.filters')

        max_uri_length = config.get('processing.max_uri_length', 200)
        if isinstance(max_uri_length, bool) or not isinstance(max_uri_length, int) or max_uri_length <= 0:
            raise ConfigurationError(
                f"processing.max_uri_length must be a positive integer, got {max_uri_length!r}"
            )

        return cls(
            http_stats_only=bool(config.get('processing.http_stats_only', False)),
            http_latency_stats_only=bool(config.get('processing.http_latency_stats_only', False)),
            stats_only=bool(config.get('processing.stats_only', False)),
            fields=[str(f) for f in fields],
            parsed_filters=parse_filters(str(f) for f in filters),
            max_uri_length=max_uri_length
        )

    @staticmethod
    def _as_list(value: Any, key: str) -> List:
        if value is None:
            return []
        if isinstance(value, str):
            return [item for item in (part.strip() for part in value.split(',')) if item]
        if isinstance(value, list):
            return value
        raise ConfigurationError(f"{key} must be a list or comma-separated string")
