"""
Process table reading.

This module provides:
- ProcStat: the per-process fields the aggregation pass needs.
- ProcessTableReader: the abstract interface of a process-table source.
- ProcfsReader: the Linux implementation, built on psutil for enumeration
  and boot time, on ``/proc/<pid>/stat`` for raw tick counters and the
  owning uid, and on ``/proc/<pid>/cmdline`` for the argument vector.

Every read failure surfaces as TransientReadError, including a process
disappearing between enumeration and the per-process read.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import psutil

from ..validation import TransientReadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcStat:
    """
    Fields of one process read from the process table.

    CPU times and the start time are raw clock ticks; memory sizes are bytes.
    """

    pid: int
    comm: str
    utime: int
    stime: int
    num_threads: int
    starttime: int
    vsize: int
    rss_bytes: int
    uid: int


class ProcessTableReader(ABC):
    """
    Abstract source of process-table data.

    Each method either returns its result or raises TransientReadError;
    failures of one process never affect reads of another.
    """

    @abstractmethod
    def all_pids(self) -> List[int]:
        """Return the pids of all live processes."""
        pass

    @abstractmethod
    def boot_time(self) -> float:
        """Return the system boot time in seconds since the epoch."""
        pass

    @abstractmethod
    def read_stat(self, pid: int) -> ProcStat:
        """Return the status fields of one process."""
        pass

    @abstractmethod
    def read_cmdline(self, pid: int) -> List[str]:
        """Return the argument vector of one process, possibly empty."""
        pass


def parse_stat_line(pid: int, line: str, page_size: int, uid: int) -> ProcStat:
    """Parse the single line of ``/proc/<pid>/stat``.

    The command name is enclosed in parentheses and may itself contain
    spaces or parentheses, so it is delimited by the first ``(`` and the
    last ``)``.

    Raises:
        ValueError: If the line does not have the expected shape.
    """
    open_paren = line.find("(")
    close_paren = line.rfind(")")
    if open_paren == -1 or close_paren < open_paren:
        raise ValueError(f"malformed stat line for pid {pid}: {line!r}")

    comm = line[open_paren + 1:close_paren]
    # fields[0] is field 3 (state) of proc(5)
    fields = line[close_paren + 1:].split()
    if len(fields) < 22:
        raise ValueError(f"short stat line for pid {pid}: {len(fields)} fields")

    return ProcStat(
        pid=pid,
        comm=comm,
        utime=int(fields[11]),
        stime=int(fields[12]),
        num_threads=int(fields[17]),
        starttime=int(fields[19]),
        vsize=int(fields[20]),
        rss_bytes=int(fields[21]) * page_size,
        uid=uid,
    )


class ProcfsReader(ProcessTableReader):
    """
    Reads the process table of the local host from a proc filesystem.

    Args:
        procfs_path: Mount point of the proc filesystem. psutil is pointed
            at the same location through ``psutil.PROCFS_PATH``.
        page_size: Memory page size in bytes; defaults to the host's.
    """

    def __init__(self, procfs_path: Union[str, Path] = "/proc",
                 page_size: Optional[int] = None):
        self.procfs_path = Path(procfs_path)
        self.page_size = page_size or os.sysconf("SC_PAGE_SIZE")
        if psutil.PROCFS_PATH != str(self.procfs_path):
            logger.info(f"Reading process data from {self.procfs_path}")
            psutil.PROCFS_PATH = str(self.procfs_path)

    def all_pids(self) -> List[int]:
        try:
            return psutil.pids()
        except OSError as e:
            raise TransientReadError(f"cannot list processes in {self.procfs_path}: {e}") from e

    def boot_time(self) -> float:
        try:
            return psutil.boot_time()
        except (OSError, RuntimeError) as e:
            raise TransientReadError(f"cannot read boot time: {e}") from e

    def read_stat(self, pid: int) -> ProcStat:
        stat_path = self.procfs_path / str(pid) / "stat"
        try:
            with open(stat_path, "r", encoding="utf-8", errors="surrogateescape") as f:
                # The stat file is owned by the process's effective owner
                uid = os.fstat(f.fileno()).st_uid
                line = f.read()
            return parse_stat_line(pid, line, self.page_size, uid)
        except OSError as e:
            raise TransientReadError(f"cannot read {stat_path}: {e}", pid=pid) from e
        except ValueError as e:
            raise TransientReadError(str(e), pid=pid) from e

    def read_cmdline(self, pid: int) -> List[str]:
        """Return the argument vector, split on NUL only.

        Processes that rewrite their title (``sshd: alice@pts/0``) leave a
        single unterminated string, which is kept as one token.
        """
        cmdline_path = self.procfs_path / str(pid) / "cmdline"
        try:
            with open(cmdline_path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise TransientReadError(f"cannot read {cmdline_path}: {e}", pid=pid) from e

        if not data:
            return []
        return [
            token.decode("utf-8", errors="surrogateescape")
            for token in data.rstrip(b"\0").split(b"\0")
        ]
