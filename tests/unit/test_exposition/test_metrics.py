"""
Unit tests for metric exposition.

Tests the metric families produced from an aggregation pass and the
routing of the exporter WSGI application.
"""

import socket
from unittest.mock import Mock, patch
from wsgiref.util import setup_testing_defaults

import pytest
from prometheus_client import CollectorRegistry, generate_latest

from procexporter.classification import build_rule_set
from procexporter.collectors import ProcGroupCollector
from procexporter.exposition import ProcMetricsCollector, make_exporter_app, make_exporter_server
from procexporter.exposition.metrics import label_value
from procexporter.models.config import RuleConfig


@pytest.fixture
def group_collector(process_table, accounts, stat_factory):
    rules = build_rule_set([RuleConfig(index=0, exe=["foo"])])
    process_table.add(
        stat_factory(1, "foo", utime=250, stime=125, num_threads=3,
                     starttime=500, vsize=4096, rss_bytes=1024),
        ["/usr/bin/foo"],
    )
    process_table.add(
        stat_factory(2, "foo", utime=50, num_threads=1, starttime=100,
                     vsize=1000, rss_bytes=24),
        ["foo"],
    )
    return ProcGroupCollector(rules, process_table, account_resolver=accounts)


@pytest.fixture
def registry(group_collector):
    registry = CollectorRegistry()
    registry.register(ProcMetricsCollector(group_collector))
    return registry


def call_app(app, path):
    environ = {"PATH_INFO": path}
    setup_testing_defaults(environ)
    start_response = Mock()
    body = b"".join(app(environ, start_response))
    status = start_response.call_args[0][0]
    return status, body


@pytest.mark.unit
class TestProcMetricsCollector:
    """Test cases for the metric families of one scrape."""

    def test_group_samples(self, registry):
        labels = {"account": "alice", "groupname": "foo"}

        assert registry.get_sample_value(
            "proc_cpu_seconds_total", {**labels, "mode": "user"}) == pytest.approx(3.0)
        assert registry.get_sample_value(
            "proc_cpu_seconds_total", {**labels, "mode": "system"}) == pytest.approx(1.25)
        assert registry.get_sample_value(
            "proc_memory_bytes", {**labels, "memtype": "virtual"}) == 5096.0
        assert registry.get_sample_value(
            "proc_memory_bytes", {**labels, "memtype": "resident"}) == 1048.0
        assert registry.get_sample_value("proc_num_procs", labels) == 2.0
        assert registry.get_sample_value("proc_num_threads", labels) == 4.0
        assert registry.get_sample_value(
            "proc_oldest_start_time_seconds", labels) == pytest.approx(1_000_001.0)

    def test_scrape_errors_counter(self, registry, process_table):
        assert registry.get_sample_value("proc_scrape_errors_total") == 0.0

        process_table.failing_stat.add(2)
        assert registry.get_sample_value("proc_scrape_errors_total") == 1.0
        assert registry.get_sample_value(
            "proc_num_procs", {"account": "alice", "groupname": "foo"}) == 1.0

    def test_every_scrape_runs_a_pass(self, group_collector):
        group_collector.read_proc_groups = Mock(wraps=group_collector.read_proc_groups)
        registry = CollectorRegistry()
        registry.register(ProcMetricsCollector(group_collector))

        generate_latest(registry)
        generate_latest(registry)

        assert group_collector.read_proc_groups.call_count == 2

    def test_no_groups_still_reports_errors(self, registry, process_table):
        process_table.fail_listing = True

        output = generate_latest(registry).decode("utf-8")

        assert "proc_scrape_errors_total 1.0" in output
        assert 'groupname="foo"' not in output

    def test_undecodable_names_do_not_break_scrape(
        self, process_table, accounts, stat_factory
    ):
        rules = build_rule_set([RuleConfig(index=0, cmdline=["."])])
        bad_exe = b"/opt/\xff\xfebin".decode("utf-8", "surrogateescape")
        process_table.add(stat_factory(1, "good"), ["/usr/bin/good"])
        process_table.add(stat_factory(2, "bad"), [bad_exe])
        registry = CollectorRegistry()
        registry.register(ProcMetricsCollector(
            ProcGroupCollector(rules, process_table, account_resolver=accounts)
        ))

        output = generate_latest(registry).decode("utf-8")

        assert 'proc_num_procs{account="alice",groupname="good"} 1.0' in output
        assert 'groupname="\ufffd\ufffdbin"' in output
        assert "proc_scrape_errors_total 0.0" in output

    def test_label_value(self):
        assert label_value("plain") == "plain"
        assert label_value(b"a\xffb".decode("utf-8", "surrogateescape")) == "a\ufffdb"

    def test_exposition_text(self, registry):
        output = generate_latest(registry).decode("utf-8")

        assert "# TYPE proc_cpu_seconds counter" in output
        assert "# TYPE proc_memory_bytes gauge" in output
        assert 'proc_num_procs{account="alice",groupname="foo"} 2.0' in output


@pytest.mark.unit
class TestExporterApp:
    """Test cases for the WSGI routing."""

    def test_metrics_path(self, registry):
        status, body = call_app(make_exporter_app(registry, "/metrics"), "/metrics")

        assert status.startswith("200")
        assert b"proc_num_procs" in body

    def test_custom_metrics_path(self, registry):
        app = make_exporter_app(registry, "/scrape")

        assert call_app(app, "/scrape")[0].startswith("200")
        assert call_app(app, "/metrics")[0].startswith("404")

    def test_landing_page_links_metrics(self, registry):
        status, body = call_app(make_exporter_app(registry, "/metrics"), "/")

        assert status.startswith("200")
        assert b'href="/metrics"' in body

    def test_unknown_path(self, registry):
        status, _ = call_app(make_exporter_app(registry, "/metrics"), "/nope")
        assert status.startswith("404")


@pytest.mark.unit
class TestExporterServer:
    """Test cases for binding the HTTP server."""

    def test_ipv4_bind(self, registry):
        server = make_exporter_server(make_exporter_app(registry, "/metrics"), ("127.0.0.1", 0))
        try:
            assert server.socket.family == socket.AF_INET
            assert server.server_address[1] > 0
        finally:
            server.server_close()

    @pytest.mark.parametrize(
        "host, family",
        [("", socket.AF_INET), ("0.0.0.0", socket.AF_INET),
         ("::", socket.AF_INET6), ("::1", socket.AF_INET6)],
    )
    def test_address_family_follows_host(self, host, family):
        with patch("procexporter.exposition.server.make_server") as mock_make_server:
            make_exporter_server(Mock(), (host, 9256))

        server_class = mock_make_server.call_args.kwargs["server_class"]
        assert server_class.address_family == family
