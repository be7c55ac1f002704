"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..classification import build_rule_set
from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import load_toml_file, parse_toml_text
from .validators import EXPORTER_KEY, validate_exporter_config, validate_rules_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

# This global variable will hold the single instance of the loaded AppConfig.
_CONFIG: Optional[AppConfig] = None

# Default configuration file, relative to the repository root. The CLI
# overrides it with --config.path.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next get_config() call loads
    from the new path.

    Args:
        config_path: Path to the TOML configuration file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def build_app_config(document: Dict[str, Any]) -> AppConfig:
    """
    Validate a parsed configuration document and compile its rules.

    Args:
        document: Parsed TOML document

    Returns:
        Fully validated AppConfig with a compiled rule set

    Raises:
        ConfigurationError: If any part of the document is invalid
    """
    exporter_config = validate_exporter_config(
        document.get(EXPORTER_KEY, {}) if isinstance(document, dict) else {}
    )
    rules_config = validate_rules_config(document)
    rule_set = build_rule_set(rules_config)

    return AppConfig(
        exporter=exporter_config,
        rules=rules_config,
        rule_set=rule_set,
    )


def load_config_text(content: str) -> AppConfig:
    """
    Build an AppConfig from TOML text without touching the cached singleton.

    Raises:
        ConfigurationError: If the text is not valid TOML or fails validation
    """
    return build_app_config(parse_toml_text(content))


def _load_config(config_path: Path) -> AppConfig:
    """
    Load the complete application configuration from a TOML file.

    Args:
        config_path: Path to the TOML configuration file

    Returns:
        Fully validated AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ConfigurationError: If the document is malformed or fails validation
    """
    try:
        document = load_toml_file(config_path, "configuration file")
        app_config = build_app_config(document)

        logger.info(
            f"Successfully loaded configuration with {len(app_config.rules)} rules"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=False,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context=f"processing configuration {config_path}",
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    The first call loads and validates the configuration file; subsequent
    calls return the cached instance.

    Returns:
        The singleton AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ConfigurationError: If the configuration is invalid
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """
    Check if configuration has been loaded and cached.
    """
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "rules_count": len(_CONFIG.rules) if _CONFIG else 0,
    }
