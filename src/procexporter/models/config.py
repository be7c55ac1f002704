"""
Configuration data models.

This module contains the configuration data structures for the exporter
settings and the process naming rules, plus the root object that ties them
together.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..classification.classifier import RuleSet


DEFAULT_PROCFS_PATH = "/proc"
DEFAULT_LISTEN_ADDRESS = ":9256"
DEFAULT_TELEMETRY_PATH = "/metrics"
DEFAULT_CLOCK_TICKS = 100
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class ExporterConfig:
    """
    Runtime settings of the exporter, loaded from the ``[exporter]`` table.
    Command-line flags override each of these.
    """

    # Root of the proc filesystem to read process data from.
    procfs_path: Path = Path(DEFAULT_PROCFS_PATH)
    # "host:port" the HTTP server binds to; an empty host means all interfaces.
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    # URL path under which metrics are served.
    telemetry_path: str = DEFAULT_TELEMETRY_PATH
    # Kernel clock ticks per second (USER_HZ) used to convert CPU and start times.
    clock_ticks: int = DEFAULT_CLOCK_TICKS
    # Name of the logging level for the root logger.
    log_level: str = DEFAULT_LOG_LEVEL


@dataclass
class RuleConfig:
    """
    One validated entry of the ``process_names`` list.

    A matcher field left as None was not configured; at least one of
    ``comm``, ``exe`` and ``cmdline`` is always set.
    """

    # Position of the entry in the document, used in error messages.
    index: int
    # Name template source; empty means the default template.
    name: str = ""
    # Exact command names.
    comm: Optional[List[str]] = None
    # Executable basenames or full paths.
    exe: Optional[List[str]] = None
    # Regular expressions that must all match the joined command line.
    cmdline: Optional[List[str]] = None


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    # The exporter runtime settings.
    exporter: ExporterConfig
    # The validated rule entries, in document order.
    rules: List[RuleConfig] = field(default_factory=list)
    # The compiled, ordered rule set built from ``rules``.
    rule_set: Optional["RuleSet"] = None
