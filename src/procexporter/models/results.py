"""
Aggregation result data models.

This module defines the per-group accumulators filled by one aggregation
pass over the process table, and the container returned to the exposition
layer. Accumulators live for a single pass only.
"""

from dataclasses import dataclass, field
from typing import Dict, NamedTuple


class GroupKey(NamedTuple):
    """Bucket key for an accumulator: owning account plus computed group name."""

    account: str
    groupname: str


@dataclass
class GroupAccumulator:
    """
    Resource usage summed over every process mapped to one GroupKey.

    ``oldest_start_time_seconds`` keeps the smallest start time seen so far;
    ``0.0`` means no process has been folded in yet.
    """

    name: str
    account: str
    cpu_system_seconds: float = 0.0
    cpu_user_seconds: float = 0.0
    virtual_memory_bytes: int = 0
    resident_memory_bytes: int = 0
    process_count: int = 0
    thread_count: int = 0
    oldest_start_time_seconds: float = 0.0

    def add(
        self,
        cpu_system_seconds: float,
        cpu_user_seconds: float,
        virtual_memory_bytes: int,
        resident_memory_bytes: int,
        thread_count: int,
        start_time_seconds: float,
    ) -> None:
        """Fold the metrics of one process into this group."""
        self.cpu_system_seconds += cpu_system_seconds
        self.cpu_user_seconds += cpu_user_seconds
        self.virtual_memory_bytes += virtual_memory_bytes
        self.resident_memory_bytes += resident_memory_bytes
        self.process_count += 1
        self.thread_count += thread_count
        if (self.oldest_start_time_seconds == 0
                or start_time_seconds < self.oldest_start_time_seconds):
            self.oldest_start_time_seconds = start_time_seconds


@dataclass
class ScrapeResult:
    """
    Output of one aggregation pass.

    Attributes:
        groups: Accumulators keyed by (account, groupname). Empty when the
            process table could not be listed.
        scrape_errors: Value of the process-wide scrape error counter after
            the pass. The counter accumulates over the exporter lifetime.
    """

    groups: Dict[GroupKey, GroupAccumulator] = field(default_factory=dict)
    scrape_errors: int = 0
