"""
Collectors package for per-group process metrics.

This package provides the aggregation pass run once per metrics scrape:
enumerate the process table, classify each process, and fold its CPU,
memory and thread figures into per-(account, group) accumulators, counting
read failures instead of aborting.
"""

from .proc_collector import ProcGroupCollector, ScrapeErrorCounter

__all__ = [
    "ProcGroupCollector",
    "ScrapeErrorCounter",
]
