"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the TOML
configuration document. Validation of its contents lives in
``validators``.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ConfigurationError, ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)


def parse_toml_text(content: str, description: str = "configuration") -> Dict[str, Any]:
    """
    Parse TOML text into a dictionary.

    Args:
        content: TOML document text
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        ConfigurationError: If the document is not valid TOML
    """
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        error = ConfigurationError(f"error parsing {description}: {e}")
        handle_config_error(
            error=error,
            context=f"parsing {description}",
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger
        )
        raise error from e


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    content = file_path.read_text(encoding="utf-8")
    return parse_toml_text(content, description=f"{description} {file_path}")
