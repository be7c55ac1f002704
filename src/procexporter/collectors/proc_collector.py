"""
Per-group aggregation of process resource usage.

This module provides the ProcGroupCollector class, which walks the process
table once per scrape, classifies every process with the configured rule
set, and sums CPU, memory, thread and process counts per (account, group).

A scrape never aborts because of one bad process: read failures are counted
in a process-wide ScrapeErrorCounter and the process is skipped.
"""

import logging
import threading
from typing import Callable, Dict, Optional

from ..classification import RuleSet
from ..models.config import DEFAULT_CLOCK_TICKS
from ..models.process import ProcessIdentity
from ..models.results import GroupAccumulator, GroupKey, ScrapeResult
from ..system.accounts import resolve_account
from ..system.processes import ProcessTableReader
from ..validation import AccountResolutionError, TransientReadError

logger = logging.getLogger(__name__)


class ScrapeErrorCounter:
    """
    Thread-safe, monotonically increasing error count.

    Shared by every scrape for the whole lifetime of the exporter; it is
    never reset.
    """

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ProcGroupCollector:
    """
    Aggregates process metrics into named groups, one pass per scrape.

    Attributes:
        rule_set: Ordered rules deciding the group of each process.
        reader: Source of process-table data.
        account_resolver: Maps a numeric uid to an account name.
        clock_ticks: Kernel clock ticks per second used for CPU and start times.
        errors: The shared scrape error counter.
    """

    def __init__(
        self,
        rule_set: RuleSet,
        reader: ProcessTableReader,
        account_resolver: Callable[[int], str] = resolve_account,
        clock_ticks: int = DEFAULT_CLOCK_TICKS,
        errors: Optional[ScrapeErrorCounter] = None,
    ):
        if clock_ticks <= 0:
            raise ValueError(f"clock_ticks must be positive, got {clock_ticks}")
        self.rule_set = rule_set
        self.reader = reader
        self.account_resolver = account_resolver
        self.clock_ticks = clock_ticks
        self.errors = errors or ScrapeErrorCounter()

    def read_proc_groups(self) -> ScrapeResult:
        """
        Run one aggregation pass over the live process table.

        Failure handling:
        - the process list cannot be read: one error, no groups returned;
        - boot time cannot be read: one error, start times computed from 0;
        - a process's stat or cmdline cannot be read: one error, skipped;
        - the owner cannot be resolved: one error, reported under account "".

        Processes matching no rule are dropped without counting an error.

        Returns:
            The groups built by this pass and the cumulative error count.
        """
        try:
            pids = self.reader.all_pids()
        except TransientReadError as e:
            self.errors.increment()
            logger.warning(f"Failed to list processes: {e}")
            return ScrapeResult(groups={}, scrape_errors=self.errors.value)

        try:
            boot_time = float(self.reader.boot_time())
        except TransientReadError as e:
            self.errors.increment()
            logger.warning(f"Failed to read boot time, start times will be skewed: {e}")
            boot_time = 0.0

        groups: Dict[GroupKey, GroupAccumulator] = {}
        matched = 0

        for pid in pids:
            try:
                stat = self.reader.read_stat(pid)
                cmdline = self.reader.read_cmdline(pid)
            except TransientReadError as e:
                self.errors.increment()
                logger.debug(f"Skipping pid {pid}: {e}")
                continue

            identity = ProcessIdentity.create(stat.comm, cmdline)
            wanted, group_name = self.rule_set.match_and_name(identity)
            if not wanted:
                continue
            matched += 1

            try:
                account = self.account_resolver(stat.uid)
            except AccountResolutionError as e:
                self.errors.increment()
                logger.debug(f"Owner of pid {pid} unresolved: {e}")
                account = ""

            key = GroupKey(account, group_name)
            group = groups.get(key)
            if group is None:
                group = GroupAccumulator(name=group_name, account=account)
                groups[key] = group

            group.add(
                cpu_system_seconds=stat.stime / self.clock_ticks,
                cpu_user_seconds=stat.utime / self.clock_ticks,
                virtual_memory_bytes=stat.vsize,
                resident_memory_bytes=stat.rss_bytes,
                thread_count=stat.num_threads,
                start_time_seconds=boot_time + stat.starttime / self.clock_ticks,
            )

        scrape_errors = self.errors.value
        logger.debug(
            f"Scrape finished: {len(pids)} processes, {matched} matched, "
            f"{len(groups)} groups, {scrape_errors} errors so far"
        )
        return ScrapeResult(groups=groups, scrape_errors=scrape_errors)
