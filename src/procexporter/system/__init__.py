"""
System interaction utilities.

This module reads the local process table and resolves process owners:

- Process enumeration, per-process status and command line, boot time
- Numeric uid to account name resolution

All reads are local and fast; failures are reported as TransientReadError
or AccountResolutionError so callers can count them and move on.
"""

from .accounts import resolve_account
from .processes import ProcStat, ProcessTableReader, ProcfsReader, parse_stat_line

__all__ = [
    "ProcStat",
    "ProcessTableReader",
    "ProcfsReader",
    "parse_stat_line",
    "resolve_account",
]
