"""Classbot configuration: schema, defaults and layered loading."""

from classbot.config.defaults import DEFAULT_CONFIG
from classbot.config.loader import ConfigError, ConfigLoader, merge_config, validate_config
from classbot.config.schema import ClassbotConfig, is_component_enabled

__all__ = [
    "DEFAULT_CONFIG",
    "ClassbotConfig",
    "ConfigError",
    "ConfigLoader",
    "is_component_enabled",
    "merge_config",
    "validate_config",
]
