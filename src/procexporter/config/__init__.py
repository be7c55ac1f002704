"""
Configuration management for the procexporter package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    build_app_config,
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config_text,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import load_toml_file, parse_toml_text
from .validators import (
    validate_exporter_config,
    validate_rule_entry,
    validate_rules_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "build_app_config",
    "load_config_text",
    # Advanced interface
    "load_toml_file",
    "parse_toml_text",
    "validate_exporter_config",
    "validate_rule_entry",
    "validate_rules_config",
]
