"""
Data models and structures for the exporter.

Configuration Models:
- Exporter runtime settings
- Process naming rules as read from the configuration document

Process Models:
- Classification input (command name and argument vector)
- Name template parameters

Result Models:
- Per-(account, group) accumulators and the result of one scrape
"""

# Configuration models
from .config import AppConfig, ExporterConfig, RuleConfig

# Process models
from .process import ProcessIdentity, TemplateParams, path_base

# Result models
from .results import GroupAccumulator, GroupKey, ScrapeResult

__all__ = [
    # Configuration
    "AppConfig",
    "ExporterConfig",
    "RuleConfig",
    # Process
    "ProcessIdentity",
    "TemplateParams",
    "path_base",
    # Results
    "GroupAccumulator",
    "GroupKey",
    "ScrapeResult",
]
