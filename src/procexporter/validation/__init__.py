"""
Validation and error handling for the procexporter package.

This module provides the exception taxonomy, input validation helpers and
consistent error reporting across the application.
"""

from .exceptions import (
    AccountResolutionError,
    ConfigurationError,
    ErrorSeverity,
    TransientReadError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_enum_choice,
    validate_listen_address,
    validate_non_empty_string,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
    validate_url_path,
)

__all__ = [
    # Exceptions
    "AccountResolutionError",
    "ConfigurationError",
    "ErrorSeverity",
    "TransientReadError",
    "ValidationError",
    # Error handling
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_enum_choice",
    "validate_listen_address",
    "validate_non_empty_string",
    "validate_positive_integer",
    "validate_regex_pattern",
    "validate_string_list",
    "validate_url_path",
]
