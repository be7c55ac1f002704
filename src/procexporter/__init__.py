"""
procexporter: per-group process metrics for Prometheus.

This package enumerates the processes of the host, classifies each one into
a named group with an ordered set of configurable rules, and exports the
summed resource usage of every (account, group) pair.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Data structures and type definitions
- validation: Exception taxonomy, input validation and error handling
- classification: Matchers, name templates and ordered rules
- system: Process table reading and account resolution
- collectors: The per-scrape aggregation pass
- exposition: Prometheus metric families and HTTP serving
- cli: Command-line interface

Usage:
    From command line:
        procexporter --config.path conf/config.toml

    Programmatically:
        from procexporter import ProcGroupCollector, ProcfsReader, load_config_text
        app_config = load_config_text(toml_text)
        collector = ProcGroupCollector(app_config.rule_set, ProcfsReader())
        result = collector.read_proc_groups()
"""

__version__ = "1.0.0"

# Main interfaces
from .config import clear_config_cache, get_config, load_config_text, set_config_path
from .collectors import ProcGroupCollector, ScrapeErrorCounter
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    ExporterConfig,
    GroupAccumulator,
    GroupKey,
    ProcessIdentity,
    RuleConfig,
    ScrapeResult,
)

# Validation utilities
from .validation import (
    AccountResolutionError,
    ConfigurationError,
    TransientReadError,
    ValidationError,
)

# System utilities
from .system import ProcfsReader, resolve_account

# Classification utilities
from .classification import Rule, RuleSet, build_rule_set

__all__ = [
    "__version__",
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "load_config_text",
    "ProcGroupCollector",
    "ScrapeErrorCounter",
    "main_cli",
    # Models
    "AppConfig",
    "ExporterConfig",
    "GroupAccumulator",
    "GroupKey",
    "ProcessIdentity",
    "RuleConfig",
    "ScrapeResult",
    # Errors
    "AccountResolutionError",
    "ConfigurationError",
    "TransientReadError",
    "ValidationError",
    # System utilities
    "ProcfsReader",
    "resolve_account",
    # Classification
    "Rule",
    "RuleSet",
    "build_rule_set",
]
