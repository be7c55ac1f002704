"""
Unit tests for the per-group aggregation pass.

Tests grouping by (account, group name), metric arithmetic, and the
partial-failure behaviour of a scrape against an in-memory process table.
"""

import threading

import pytest

from procexporter.classification import build_rule_set
from procexporter.collectors import ProcGroupCollector, ScrapeErrorCounter
from procexporter.models.config import RuleConfig
from procexporter.models.results import GroupKey


@pytest.fixture
def foo_rules():
    """Group every 'foo' executable under its basename."""
    return build_rule_set([RuleConfig(index=0, exe=["foo"])])


@pytest.fixture
def collector(foo_rules, process_table, accounts):
    return ProcGroupCollector(foo_rules, process_table, account_resolver=accounts)


@pytest.mark.unit
class TestScrapeErrorCounter:
    """Test cases for the shared error counter."""

    def test_starts_at_zero(self):
        assert ScrapeErrorCounter().value == 0

    def test_increment(self):
        counter = ScrapeErrorCounter()
        counter.increment()
        counter.increment(3)
        assert counter.value == 4

    def test_concurrent_increments_are_not_lost(self):
        counter = ScrapeErrorCounter()

        def bump():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter.value == 8000


@pytest.mark.unit
class TestAggregation:
    """Test cases for grouping and metric arithmetic."""

    def test_two_processes_same_group(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo", utime=100, vsize=10), ["/usr/bin/foo"])
        process_table.add(stat_factory(2, "foo", utime=50, vsize=5), ["/opt/foo", "-x"])

        result = collector.read_proc_groups()

        assert list(result.groups) == [GroupKey("alice", "foo")]
        group = result.groups[GroupKey("alice", "foo")]
        assert group.process_count == 2
        assert group.cpu_user_seconds == pytest.approx(1.5)
        assert group.virtual_memory_bytes == 15
        assert result.scrape_errors == 0

    def test_accounts_split_groups(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo", uid=1000), ["foo"])
        process_table.add(stat_factory(2, "foo", uid=0), ["foo"])

        result = collector.read_proc_groups()

        assert set(result.groups) == {GroupKey("alice", "foo"), GroupKey("root", "foo")}

    def test_metric_arithmetic(self, collector, process_table, stat_factory):
        process_table.add(
            stat_factory(
                7, "foo", utime=250, stime=125, num_threads=4,
                starttime=5000, vsize=4096, rss_bytes=8192,
            ),
            ["foo"],
        )

        group = collector.read_proc_groups().groups[GroupKey("alice", "foo")]

        assert group.cpu_user_seconds == pytest.approx(2.5)
        assert group.cpu_system_seconds == pytest.approx(1.25)
        assert group.thread_count == 4
        assert group.resident_memory_bytes == 8192
        assert group.virtual_memory_bytes == 4096
        assert group.oldest_start_time_seconds == pytest.approx(1_000_050.0)

    def test_clock_ticks_respected(self, foo_rules, process_table, accounts, stat_factory):
        process_table.add(stat_factory(1, "foo", utime=1000), ["foo"])
        collector = ProcGroupCollector(
            foo_rules, process_table, account_resolver=accounts, clock_ticks=250
        )

        group = collector.read_proc_groups().groups[GroupKey("alice", "foo")]
        assert group.cpu_user_seconds == pytest.approx(4.0)

    def test_invalid_clock_ticks(self, foo_rules, process_table):
        with pytest.raises(ValueError):
            ProcGroupCollector(foo_rules, process_table, clock_ticks=0)

    def test_oldest_start_time_is_minimum(self, collector, process_table, stat_factory):
        for pid, start in ((1, 900), (2, 300), (3, 600)):
            process_table.add(stat_factory(pid, "foo", starttime=start), ["foo"])

        group = collector.read_proc_groups().groups[GroupKey("alice", "foo")]
        assert group.oldest_start_time_seconds == pytest.approx(1_000_003.0)

    def test_result_independent_of_enumeration_order(
        self, foo_rules, accounts, stat_factory, process_table_factory
    ):
        stats = [
            stat_factory(1, "foo", utime=25, starttime=700, num_threads=2),
            stat_factory(2, "foo", utime=50, starttime=100, num_threads=3),
            stat_factory(3, "foo", utime=75, starttime=400, num_threads=1),
        ]

        results = []
        for ordering in (stats, list(reversed(stats))):
            table = process_table_factory()
            for stat in ordering:
                table.add(stat, ["foo"])
            collector = ProcGroupCollector(foo_rules, table, account_resolver=accounts)
            results.append(collector.read_proc_groups().groups)

        assert results[0] == results[1]

    def test_unmatched_processes_dropped_silently(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "bash"), ["-bash"])

        result = collector.read_proc_groups()

        assert result.groups == {}
        assert result.scrape_errors == 0

    def test_first_matching_rule_names_group(self, process_table, accounts, stat_factory):
        rules = build_rule_set([
            RuleConfig(index=0, name="specific", cmdline=["--special"]),
            RuleConfig(index=1, name="generic", comm=["foo"]),
        ])
        process_table.add(stat_factory(1, "foo"), ["foo", "--special"])
        process_table.add(stat_factory(2, "foo"), ["foo"])

        groups = ProcGroupCollector(rules, process_table, account_resolver=accounts) \
            .read_proc_groups().groups

        assert groups[GroupKey("alice", "specific")].process_count == 1
        assert groups[GroupKey("alice", "generic")].process_count == 1

    def test_passes_are_independent(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo", utime=100), ["foo"])

        first = collector.read_proc_groups().groups[GroupKey("alice", "foo")]
        second = collector.read_proc_groups().groups[GroupKey("alice", "foo")]

        assert first is not second
        assert second.process_count == 1
        assert second.cpu_user_seconds == pytest.approx(1.0)


@pytest.mark.unit
class TestPartialFailures:
    """Test cases for failures that must not abort a scrape."""

    def test_vanished_process_counts_one_error(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo"), ["foo"])
        process_table.add(stat_factory(2, "foo"), ["foo"])
        process_table.failing_stat.add(2)

        result = collector.read_proc_groups()

        assert result.groups[GroupKey("alice", "foo")].process_count == 1
        assert result.scrape_errors == 1

    def test_cmdline_failure_counts_one_error(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo"), ["foo"])
        process_table.failing_cmdline.add(1)

        result = collector.read_proc_groups()

        assert result.groups == {}
        assert result.scrape_errors == 1

    def test_listing_failure_returns_no_groups(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo"), ["foo"])
        process_table.fail_listing = True

        result = collector.read_proc_groups()

        assert result.groups == {}
        assert result.scrape_errors == 1

    def test_boot_time_failure_continues(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo", starttime=500), ["foo"])
        process_table.fail_boot_time = True

        result = collector.read_proc_groups()

        group = result.groups[GroupKey("alice", "foo")]
        assert group.oldest_start_time_seconds == pytest.approx(5.0)
        assert result.scrape_errors == 1

    def test_unresolved_account_reported_as_empty(
        self, collector, process_table, stat_factory
    ):
        process_table.add(stat_factory(1, "foo", uid=4242), ["foo"])

        result = collector.read_proc_groups()

        assert list(result.groups) == [GroupKey("", "foo")]
        assert result.scrape_errors == 1

    def test_errors_accumulate_across_passes(self, collector, process_table, stat_factory):
        process_table.add(stat_factory(1, "foo"), ["foo"])
        process_table.failing_stat.add(1)

        assert collector.read_proc_groups().scrape_errors == 1
        assert collector.read_proc_groups().scrape_errors == 2

    def test_shared_counter(self, foo_rules, process_table, accounts, stat_factory):
        counter = ScrapeErrorCounter()
        counter.increment(5)
        process_table.add(stat_factory(1, "foo"), ["foo"])
        process_table.failing_stat.add(1)

        collector = ProcGroupCollector(
            foo_rules, process_table, account_resolver=accounts, errors=counter
        )

        assert collector.read_proc_groups().scrape_errors == 6
        assert counter.value == 6
