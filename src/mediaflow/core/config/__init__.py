"""
Configuration Management Package

Provides Pydantic-based configuration models and management for mediaflow.
"""

from mediaflow.core.config.models import AppConfig, EngineConfig, JobsConfig, ThumbnailConfig
from mediaflow.core.config.manager import ConfigManager, ConfigurationError

__all__ = [
    "AppConfig",
    "EngineConfig",
    "ThumbnailConfig",
    "JobsConfig",
    "ConfigManager",
    "ConfigurationError",
]
