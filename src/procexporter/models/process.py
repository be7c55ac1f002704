"""
Per-process classification input.

This module contains the immutable identity record that the rule set
classifies, and the parameter record that name templates render against.
"""

from dataclasses import dataclass, field
from typing import Dict, Sequence, Tuple


def path_base(path: str) -> str:
    """Return the last element of a slash-separated path.

    Trailing slashes are removed before the last element is taken, so
    ``"/usr/bin/"`` yields ``"bin"``. An empty path yields ``"."`` and a path
    made only of slashes yields ``"/"``.

    Examples:
        >>> path_base("/opt/app/bin/server")
        'server'
        >>> path_base("worker")
        'worker'
    """
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ProcessIdentity:
    """
    The attributes a process is classified by.

    Attributes:
        name: Short command name, as reported in the process status.
        cmdline: Command-line argument vector; empty for kernel threads and
            zombies.
    """

    name: str
    cmdline: Tuple[str, ...] = ()

    @classmethod
    def create(cls, name: str, cmdline: Sequence[str] = ()) -> "ProcessIdentity":
        return cls(name=name, cmdline=tuple(cmdline))


@dataclass(frozen=True)
class TemplateParams:
    """
    Fields available to a name template.

    The field names are part of the configuration format (``{{.ExeBase}}``)
    and therefore keep their capitalized spelling.
    """

    Comm: str
    ExeBase: str
    ExeFull: str
    Matches: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_identity(cls, identity: ProcessIdentity,
                      captures: Dict[str, str]) -> "TemplateParams":
        exe_base = exe_full = identity.name
        if identity.cmdline:
            exe_full = identity.cmdline[0]
            exe_base = path_base(exe_full)
        return cls(
            Comm=identity.name,
            ExeBase=exe_base,
            ExeFull=exe_full,
            Matches=dict(captures),
        )
