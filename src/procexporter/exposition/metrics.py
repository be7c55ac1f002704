"""
Prometheus metric families for process groups.

ProcMetricsCollector is registered with a prometheus_client registry and
runs one aggregation pass per collect() call, so every HTTP scrape sees a
fresh view of the process table.
"""

import logging
from typing import Iterable

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from ..collectors.proc_collector import ProcGroupCollector
from ..models.results import ScrapeResult

logger = logging.getLogger(__name__)

NAMESPACE = "proc"

GROUP_LABELS = ["account", "groupname"]


def label_value(value: str) -> str:
    """Make a label value encodable as UTF-8.

    Process names and command lines are decoded with surrogateescape, so
    invalid bytes come through as lone surrogates; they become U+FFFD here.
    """
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


class ProcMetricsCollector:
    """
    Custom prometheus_client collector exposing per-group process metrics.

    Metric names:
        proc_cpu_seconds_total{account,groupname,mode}
        proc_memory_bytes{account,groupname,memtype}
        proc_num_procs{account,groupname}
        proc_num_threads{account,groupname}
        proc_oldest_start_time_seconds{account,groupname}
        proc_scrape_errors_total
    """

    def __init__(self, group_collector: ProcGroupCollector):
        self.group_collector = group_collector

    def describe(self) -> Iterable[Metric]:
        """Return empty families so registration does not trigger a scrape."""
        return self._families(ScrapeResult())

    def collect(self) -> Iterable[Metric]:
        result = self.group_collector.read_proc_groups()
        return self._families(result)

    def _families(self, result: ScrapeResult):
        cpu = CounterMetricFamily(
            f"{NAMESPACE}_cpu_seconds_total",
            "Total CPU time spent in seconds.",
            labels=GROUP_LABELS + ["mode"],
        )
        memory = GaugeMetricFamily(
            f"{NAMESPACE}_memory_bytes",
            "Used amount of memory in bytes.",
            labels=GROUP_LABELS + ["memtype"],
        )
        num_procs = GaugeMetricFamily(
            f"{NAMESPACE}_num_procs",
            "Number of processes.",
            labels=GROUP_LABELS,
        )
        num_threads = GaugeMetricFamily(
            f"{NAMESPACE}_num_threads",
            "Number of threads.",
            labels=GROUP_LABELS,
        )
        oldest_start_time = GaugeMetricFamily(
            f"{NAMESPACE}_oldest_start_time_seconds",
            "Oldest process start time in seconds since the epoch.",
            labels=GROUP_LABELS,
        )

        for group in result.groups.values():
            labels = [label_value(group.account), label_value(group.name)]
            cpu.add_metric(labels + ["system"], group.cpu_system_seconds)
            cpu.add_metric(labels + ["user"], group.cpu_user_seconds)
            memory.add_metric(labels + ["virtual"], float(group.virtual_memory_bytes))
            memory.add_metric(labels + ["resident"], float(group.resident_memory_bytes))
            num_procs.add_metric(labels, float(group.process_count))
            num_threads.add_metric(labels, float(group.thread_count))
            oldest_start_time.add_metric(labels, group.oldest_start_time_seconds)

        scrape_errors = CounterMetricFamily(
            f"{NAMESPACE}_scrape_errors",
            "Errors collecting proc metrics.",
            value=float(result.scrape_errors),
        )

        return [cpu, memory, num_procs, num_threads, oldest_start_time, scrape_errors]
