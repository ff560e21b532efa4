"""
Configuration Manager

Handles hierarchical configuration loading and validation with support for
CLI args → environment variables → config files → defaults.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from mediaflow.core.config.models import AppConfig


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""
    pass


class ConfigManager:
    """
    Manages application configuration with hierarchical loading and validation.

    Configuration sources in order of precedence:
    1. CLI arguments (highest priority)
    2. Environment variables
    3. Configuration files
    4. Default values (lowest priority)
    """

    ENV_PREFIX = "MEDIAFLOW_"

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional path to configuration file
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._config_paths = self._get_default_config_paths()

    def _get_default_config_paths(self) -> List[Path]:
        """Get default configuration file search paths."""
        search_paths = [
            Path.cwd() / "mediaflow.yaml",
            Path.cwd() / "mediaflow.yml",
            Path.cwd() / ".mediaflow.yaml",
            Path.home() / ".config" / "mediaflow" / "config.yaml",
        ]

        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        if xdg_config:
            search_paths.append(Path(xdg_config) / "mediaflow" / "config.yaml")

        return search_paths

    def load_config(
        self,
        cli_args: Optional[Dict[str, Any]] = None,
        env_prefix: str = ENV_PREFIX
    ) -> AppConfig:
        """
        Load and validate configuration from all sources.

        Args:
            cli_args: Dictionary of CLI arguments
            env_prefix: Prefix for environment variables

        Returns:
            Validated AppConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_config_file()
        if file_config:
            if not isinstance(file_config, dict):
                raise ConfigurationError("Configuration file must contain a mapping")
            config_data.update(file_config)

        env_config = self._load_env_config(env_prefix)
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        if cli_args:
            cli_config = self._normalize_cli_args(cli_args)
            config_data = self._deep_merge(config_data, cli_config)

        try:
            self._config = AppConfig(**config_data)
            return self._config
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _load_config_file(self) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        config_file = self.config_file

        if not config_file:
            for path in self._config_paths:
                if path.exists() and path.is_file():
                    config_file = path
                    break

        if not config_file:
            return None
        if not config_file.exists():
            if self.config_file is not None:
                raise ConfigurationError(f"Config file not found: {config_file}")
            return None

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.suffix.lower() == '.json':
                    return json.load(f)
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load config file {config_file}: {e}") from e

    def _load_env_config(self, prefix: str) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        env_mappings = {
            # Engine configuration
            f"{prefix}IMAGE_QUALITY": ("engines", "default_image_quality", int),
            f"{prefix}PRESERVE_METADATA": ("engines", "preserve_original_metadata", self._parse_bool),
            f"{prefix}VIDEO_CRF": ("engines", "video_quality_crf", int),
            f"{prefix}FFMPEG_PATH": ("engines", "ffmpeg_path", str),
            f"{prefix}FFPROBE_PATH": ("engines", "ffprobe_path", str),
            f"{prefix}RSVG_CONVERT_PATH": ("engines", "rsvg_convert_path", str),

            # Thumbnail configuration
            f"{prefix}THUMBNAIL_SIZES": ("thumbnails", "sizes", self._parse_int_list),
            f"{prefix}THUMBNAIL_FORMAT": ("thumbnails", "format", str),
            f"{prefix}THUMBNAIL_QUALITY": ("thumbnails", "quality", int),

            # Job configuration
            f"{prefix}STATUS_DIR": ("jobs", "status_dir", str),
            f"{prefix}SPOOL_DIR": ("jobs", "spool_dir", str),
            f"{prefix}RETENTION_DAYS": ("jobs", "retention_days", int),
            f"{prefix}POLL_INTERVAL": ("jobs", "poll_interval", float),

            # General settings
            f"{prefix}VERBOSE": ("verbose", None, self._parse_bool),
            f"{prefix}DEBUG": ("debug", None, self._parse_bool),
            f"{prefix}LOG_LEVEL": ("log_level", None, str),
        }

        for env_var, (section, key, parser) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                try:
                    parsed_value = parser(value)
                except (ValueError, TypeError) as e:
                    raise ConfigurationError(f"Invalid value for {env_var}: {value} ({e})") from e
                if key is None:
                    env_config[section] = parsed_value
                else:
                    env_config.setdefault(section, {})[key] = parsed_value

        return env_config

    def _normalize_cli_args(self, cli_args: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize CLI arguments to configuration structure."""
        normalized: Dict[str, Any] = {}

        cli_mappings = {
            'verbose': 'verbose',
            'debug': 'debug',
            'log_level': 'log_level',

            'quality': ('engines', 'default_image_quality'),
            'crf': ('engines', 'video_quality_crf'),

            'thumbnail_sizes': ('thumbnails', 'sizes'),
            'thumbnail_format': ('thumbnails', 'format'),

            'status_dir': ('jobs', 'status_dir'),
            'spool_dir': ('jobs', 'spool_dir'),
            'retention_days': ('jobs', 'retention_days'),
            'poll_interval': ('jobs', 'poll_interval'),
        }

        for cli_key, value in cli_args.items():
            if value is None:
                continue

            mapping = cli_mappings.get(cli_key)
            if isinstance(mapping, tuple):
                section, key = mapping
                normalized.setdefault(section, {})[key] = value
            elif mapping:
                normalized[mapping] = value

        return normalized

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _parse_bool(value: Union[str, bool]) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        return value.lower() in {'true', '1', 'yes', 'on', 'enabled'}

    @staticmethod
    def _parse_int_list(value: str) -> List[int]:
        """Parse comma separated integers."""
        return [int(item.strip()) for item in value.split(',') if item.strip()]

    def validate_config(self, config: Optional[AppConfig] = None) -> List[str]:
        """
        Validate configuration and return list of warnings/issues.

        Args:
            config: Configuration to validate (uses loaded config if None)

        Returns:
            List of validation warnings/issues
        """
        if config is None:
            config = self._config

        if config is None:
            return ["No configuration loaded"]

        warnings = []

        for label, directory in (("status", config.jobs.status_dir), ("spool", config.jobs.spool_dir)):
            if directory.exists() and not directory.is_dir():
                warnings.append(f"Job {label} path is not a directory: {directory}")

        if config.jobs.retention_days == 0:
            warnings.append("retention_days is 0, cleanup removes every job record")

        return warnings

    def create_example_config(self, output_file: Path) -> None:
        """Write the default configuration as YAML."""
        config_dict = AppConfig().model_dump(mode='json')

        with open(output_file, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    @property
    def config(self) -> Optional[AppConfig]:
        """Get the loaded configuration."""
        return self._config
