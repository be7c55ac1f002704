"""
Scalar validation functions.

Small building blocks used by the configuration validators. Each one
either returns the validated (possibly normalized) value or raises
ValidationError naming the offending field.
"""

import re
from typing import Any, List, Optional, Tuple

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a string with at least one non-blank character."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value


def validate_string_list(value: Any, field_name: str = "value") -> List[str]:
    """
    Validate a non-empty list of non-empty strings.

    Args:
        value: Value to validate
        field_name: Name of the field being validated

    Returns:
        The list, copied

    Raises:
        ValidationError: If the value is not a list, is empty, or holds
            anything other than non-empty strings
    """
    if not isinstance(value, list):
        raise ValidationError(
            f"{field_name} must be a list of strings, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    if not value:
        raise ValidationError(
            f"{field_name} must be a non-empty list",
            field_name=field_name,
            value=value
        )

    validated = []
    for i, item in enumerate(value):
        if not isinstance(item, str) or not item:
            raise ValidationError(
                f"{field_name}[{i}] must be a non-empty string, got {item!r}",
                field_name=f"{field_name}[{i}]",
                value=item
            )
        validated.append(item)
    return validated


def validate_regex_pattern(pattern: Any, field_name: str = "regex_pattern") -> "re.Pattern":
    """
    Validate and compile a regex pattern.

    Args:
        pattern: Regex pattern to validate
        field_name: Name of the field being validated

    Returns:
        The compiled pattern

    Raises:
        ValidationError: If pattern is invalid
    """
    if not pattern or not isinstance(pattern, str):
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )

    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError(
            f"{field_name} is not a valid regex pattern: {e}",
            field_name=field_name,
            value=pattern
        )


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, in the spelling used by ``valid_choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in valid_choices:
            raise ValidationError(
                f"{field_name} must be one of {valid_choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in valid_choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return valid_choices[lower_choices.index(lower_value)]


def validate_listen_address(address: Any, field_name: str = "listen_address") -> Tuple[str, int]:
    """
    Validate a ``host:port`` listen address.

    An empty host (``":9256"``) means all interfaces.

    Returns:
        Tuple of (host, port)

    Raises:
        ValidationError: If the address cannot be split or the port is invalid
    """
    if not isinstance(address, str) or ":" not in address:
        raise ValidationError(
            f"{field_name} must have the form 'host:port', got {address!r}",
            field_name=field_name,
            value=address
        )

    host, _, port = address.rpartition(":")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    port_number = validate_positive_integer(
        port, min_value=1, max_value=65535, field_name=f"{field_name} port"
    )
    return host, port_number


def validate_url_path(path: Any, field_name: str = "path") -> str:
    """Validate an absolute URL path such as ``/metrics``."""
    if not isinstance(path, str) or not path.startswith("/"):
        raise ValidationError(
            f"{field_name} must start with '/', got {path!r}",
            field_name=field_name,
            value=path
        )
    if path == "/":
        raise ValidationError(
            f"{field_name} cannot be the root path",
            field_name=field_name,
            value=path
        )
    return path
