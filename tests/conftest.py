"""
Pytest configuration and shared fixtures for the procexporter test suite.

This module provides common fixtures, an in-memory process table, and
configuration helpers for all test modules.
"""

import sys
import tempfile
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procexporter.system.processes import ProcStat, ProcessTableReader  # noqa: E402
from procexporter.validation import AccountResolutionError, TransientReadError  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_text():
    """A complete configuration document."""
    return """
[exporter]
procfs_path = "/proc"
listen_address = "127.0.0.1:9256"
telemetry_path = "/metrics"
clock_ticks = 100
log_level = "debug"

[[process_names]]
name = "{{.Comm}}-{{.Matches.role}}"
comm = ["worker"]
cmdline = ["--role=(?P<role>\\\\w+)"]

[[process_names]]
exe = ["/usr/bin/foo", "bar"]

[[process_names]]
name = "shells"
comm = ["bash", "sh"]
"""


@pytest.fixture
def config_file(temp_dir, sample_config_text):
    """Write the sample configuration to a temporary file."""
    path = temp_dir / "config.toml"
    path.write_text(sample_config_text, encoding="utf-8")
    return path


# ============================================================================
# Process Table Fixtures
# ============================================================================


def make_stat(
    pid: int,
    comm: str,
    utime: int = 0,
    stime: int = 0,
    num_threads: int = 1,
    starttime: int = 0,
    vsize: int = 0,
    rss_bytes: int = 0,
    uid: int = 1000,
) -> ProcStat:
    """Build a ProcStat with defaults for the fields a test does not care about."""
    return ProcStat(
        pid=pid,
        comm=comm,
        utime=utime,
        stime=stime,
        num_threads=num_threads,
        starttime=starttime,
        vsize=vsize,
        rss_bytes=rss_bytes,
        uid=uid,
    )


class FakeProcessTable(ProcessTableReader):
    """
    In-memory process table.

    Pids listed in ``failing_stat`` or ``failing_cmdline`` raise
    TransientReadError, as a vanished process would.
    """

    def __init__(self, boot_time: float = 1_000_000.0):
        self.stats: Dict[int, ProcStat] = {}
        self.cmdlines: Dict[int, List[str]] = {}
        self._boot_time = boot_time
        self.fail_listing = False
        self.fail_boot_time = False
        self.failing_stat: Set[int] = set()
        self.failing_cmdline: Set[int] = set()

    def add(self, stat: ProcStat, cmdline: Optional[List[str]] = None) -> None:
        self.stats[stat.pid] = stat
        self.cmdlines[stat.pid] = list(cmdline or [])

    def all_pids(self) -> List[int]:
        if self.fail_listing:
            raise TransientReadError("cannot list processes")
        return list(self.stats)

    def boot_time(self) -> float:
        if self.fail_boot_time:
            raise TransientReadError("cannot read boot time")
        return self._boot_time

    def read_stat(self, pid: int) -> ProcStat:
        if pid in self.failing_stat or pid not in self.stats:
            raise TransientReadError(f"no such process {pid}", pid=pid)
        return self.stats[pid]

    def read_cmdline(self, pid: int) -> List[str]:
        if pid in self.failing_cmdline or pid not in self.cmdlines:
            raise TransientReadError(f"no such process {pid}", pid=pid)
        return self.cmdlines[pid]


class FakeAccounts:
    """uid -> name lookup backed by a dict; unknown uids fail."""

    def __init__(self, names: Optional[Dict[int, str]] = None):
        self.names = names if names is not None else {1000: "alice", 0: "root"}

    def __call__(self, uid: int) -> str:
        try:
            return self.names[uid]
        except KeyError:
            raise AccountResolutionError(f"unknown uid {uid}", uid=uid)


@pytest.fixture
def process_table():
    """An empty in-memory process table."""
    return FakeProcessTable()


@pytest.fixture
def process_table_factory():
    """Build further in-memory process tables within one test."""
    return FakeProcessTable


@pytest.fixture
def accounts():
    """Account lookup knowing uid 1000 (alice) and 0 (root)."""
    return FakeAccounts()


@pytest.fixture
def stat_factory():
    """Provide the make_stat helper to tests."""
    return make_stat


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    from procexporter.config import clear_config_cache, set_config_path

    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    clear_config_cache()
    set_config_path(original_config_path)
