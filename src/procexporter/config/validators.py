"""
Configuration validation utilities.

This module turns the raw parsed document into validated configuration
models: the optional ``[exporter]`` table and the ``process_names`` rule
list. Every error names the offending entry by its position.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

from ..models.config import (
    DEFAULT_CLOCK_TICKS,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROCFS_PATH,
    DEFAULT_TELEMETRY_PATH,
    ExporterConfig,
    RuleConfig,
)
from ..validation import (
    ConfigurationError,
    ValidationError,
    validate_enum_choice,
    validate_listen_address,
    validate_non_empty_string,
    validate_positive_integer,
    validate_string_list,
    validate_url_path,
)

logger = logging.getLogger(__name__)

RULES_KEY = "process_names"
EXPORTER_KEY = "exporter"
MATCHER_KEYS = ("comm", "exe", "cmdline")
NAME_KEY = "name"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def validate_exporter_config(exporter_data: Any) -> ExporterConfig:
    """
    Validate and create an ExporterConfig from the ``[exporter]`` table.

    Missing keys take their defaults.

    Args:
        exporter_data: Raw ``[exporter]`` table, or an empty dict

    Returns:
        Validated ExporterConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    if not isinstance(exporter_data, dict):
        raise ConfigurationError(
            f"'{EXPORTER_KEY}' must be a table, got {type(exporter_data).__name__}",
            field_name=EXPORTER_KEY,
            value=exporter_data,
        )

    try:
        procfs_path = validate_non_empty_string(
            exporter_data.get("procfs_path", DEFAULT_PROCFS_PATH),
            field_name="exporter.procfs_path",
        )

        listen_address = exporter_data.get("listen_address", DEFAULT_LISTEN_ADDRESS)
        validate_listen_address(listen_address, field_name="exporter.listen_address")

        telemetry_path = validate_url_path(
            exporter_data.get("telemetry_path", DEFAULT_TELEMETRY_PATH),
            field_name="exporter.telemetry_path",
        )

        clock_ticks = validate_positive_integer(
            exporter_data.get("clock_ticks", DEFAULT_CLOCK_TICKS),
            min_value=1,
            max_value=10000,
            field_name="exporter.clock_ticks",
        )

        log_level = validate_enum_choice(
            exporter_data.get("log_level", DEFAULT_LOG_LEVEL),
            valid_choices=LOG_LEVELS,
            field_name="exporter.log_level",
            case_sensitive=False,
        )
    except ConfigurationError:
        raise
    except ValidationError as e:
        logger.error(f"Exporter configuration validation failed: {e}")
        raise ConfigurationError(str(e), field_name=e.field_name, value=e.value) from e

    unknown_keys = sorted(
        set(exporter_data) - {"procfs_path", "listen_address", "telemetry_path",
                              "clock_ticks", "log_level"}
    )
    if unknown_keys:
        logger.warning(f"Ignoring unknown keys in [{EXPORTER_KEY}]: {unknown_keys}")

    return ExporterConfig(
        procfs_path=Path(procfs_path),
        listen_address=listen_address,
        telemetry_path=telemetry_path,
        clock_ticks=clock_ticks,
        log_level=log_level,
    )


def validate_rule_entry(rule_data: Any, index: int) -> RuleConfig:
    """
    Validate one entry of the ``process_names`` list.

    Args:
        rule_data: Raw entry, expected to be a table
        index: Position of the entry in the list

    Returns:
        Validated RuleConfig

    Raises:
        ConfigurationError: If the entry is not a table, a value has the
            wrong type, or none of comm/exe/cmdline is present
    """
    prefix = f"{RULES_KEY}[{index}]"

    if not isinstance(rule_data, dict):
        raise ConfigurationError(
            f"{prefix}: entry must be a table, got {type(rule_data).__name__}",
            field_name=prefix,
            value=rule_data,
        )

    name = rule_data.get(NAME_KEY, "")
    if not isinstance(name, str):
        raise ConfigurationError(
            f"{prefix}.{NAME_KEY}: non-string value {name!r}",
            field_name=f"{prefix}.{NAME_KEY}",
            value=name,
        )

    matcher_values: Dict[str, List[str]] = {}
    for key in MATCHER_KEYS:
        if key not in rule_data:
            continue
        try:
            matcher_values[key] = validate_string_list(
                rule_data[key], field_name=f"{prefix}.{key}"
            )
        except ValidationError as e:
            raise ConfigurationError(str(e), field_name=e.field_name, value=e.value) from e

    if not matcher_values:
        raise ConfigurationError(
            f"{prefix}: no matchers provided, expected at least one of {list(MATCHER_KEYS)}",
            field_name=prefix,
            value=rule_data,
        )

    unknown_keys = sorted(set(rule_data) - set(MATCHER_KEYS) - {NAME_KEY})
    if unknown_keys:
        logger.warning(f"{prefix}: ignoring unknown keys {unknown_keys}")

    return RuleConfig(
        index=index,
        name=name,
        comm=matcher_values.get("comm"),
        exe=matcher_values.get("exe"),
        cmdline=matcher_values.get("cmdline"),
    )


def validate_rules_config(document: Any) -> List[RuleConfig]:
    """
    Validate the rule list of a parsed configuration document.

    Args:
        document: The whole parsed document

    Returns:
        List of validated RuleConfig instances, in document order

    Raises:
        ConfigurationError: If the document has no ``process_names`` list or
            any entry is invalid
    """
    if not isinstance(document, dict):
        raise ConfigurationError(
            "error parsing config: top level must be a table",
            value=document,
        )
    if RULES_KEY not in document:
        raise ConfigurationError(
            f"error parsing config: no top-level '{RULES_KEY}' key",
            field_name=RULES_KEY,
        )

    rules_data = document[RULES_KEY]
    if not isinstance(rules_data, list):
        raise ConfigurationError(
            f"error parsing config: '{RULES_KEY}' is not a list",
            field_name=RULES_KEY,
            value=rules_data,
        )

    rules_config = []
    for i, rule_data in enumerate(rules_data):
        try:
            rules_config.append(validate_rule_entry(rule_data, i))
        except ConfigurationError as e:
            logger.error(f"Rule configuration validation failed: {e}")
            raise

    if not rules_config:
        logger.warning(f"'{RULES_KEY}' is empty; no process will be reported")

    return rules_config
