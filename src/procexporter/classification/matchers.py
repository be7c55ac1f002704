"""
Matcher primitives for process classification.

This module provides:
- Matcher: the abstract interface every predicate implements.
- CommMatcher, ExeMatcher, CmdlineMatcher: the three configurable predicates.
- AllOfMatcher: a conjunction of predicates that merges their captures.

A matcher returns a ``(matched, captures)`` pair. Captures are only
meaningful when ``matched`` is True and are never partial.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.process import ProcessIdentity, path_base

logger = logging.getLogger(__name__)

MatchResult = Tuple[bool, Dict[str, str]]


class Matcher(ABC):
    """
    Abstract base class for process predicates.

    Subclasses decide whether a process identity satisfies them and may
    produce named captures for the name template.
    """

    @abstractmethod
    def match(self, identity: ProcessIdentity) -> MatchResult:
        """
        Evaluate the predicate against one process.

        Args:
            identity: Command name and argument vector of the process.

        Returns:
            Tuple of (matched, captures). ``captures`` is empty when nothing
            was captured or the match failed.
        """
        pass


class CommMatcher(Matcher):
    """Matches processes whose command name is one of the configured names."""

    def __init__(self, comms: Iterable[str]):
        self.comms = frozenset(comms)

    def match(self, identity: ProcessIdentity) -> MatchResult:
        return (identity.name in self.comms), {}

    def __repr__(self) -> str:
        return f"CommMatcher({sorted(self.comms)!r})"


class ExeMatcher(Matcher):
    """
    Matches processes by the executable in the first command-line token.

    Each configured entry is either a bare basename, which matches that
    executable in any directory, or a full path, which only matches when the
    first token is exactly that path. Entries are indexed by basename, so
    when one basename is configured twice the later entry wins.
    """

    def __init__(self, exes: Iterable[str]):
        # basename -> required full path, or None when any directory is accepted
        self.exes: Dict[str, Optional[str]] = {}
        for exe in exes:
            if "/" in exe:
                self.exes[path_base(exe)] = exe
            else:
                self.exes[exe] = None

    def match(self, identity: ProcessIdentity) -> MatchResult:
        if not identity.cmdline:
            return False, {}

        exe_full = identity.cmdline[0]
        exe_base = path_base(exe_full)
        if exe_base not in self.exes:
            return False, {}

        required_path = self.exes[exe_base]
        if required_path is None:
            return True, {}
        return (required_path == exe_full), {}

    def __repr__(self) -> str:
        return f"ExeMatcher({self.exes!r})"


class CmdlineMatcher(Matcher):
    """
    Matches processes whose joined command line satisfies every regex.

    The argument vector is joined with single spaces and searched with each
    pattern in order. Named groups are collected from every pattern; a later
    pattern overwrites a same-named group of an earlier one.
    """

    def __init__(self, regexes: Sequence["re.Pattern"]):
        self.regexes: List["re.Pattern"] = list(regexes)

    def match(self, identity: ProcessIdentity) -> MatchResult:
        cmdline = " ".join(identity.cmdline)
        captures: Dict[str, str] = {}

        for regex in self.regexes:
            found = regex.search(cmdline)
            if found is None:
                return False, {}
            for group_name, value in found.groupdict().items():
                # Non-participating optional groups render as empty text
                captures[group_name] = value if value is not None else ""

        return True, captures

    def __repr__(self) -> str:
        return f"CmdlineMatcher({[r.pattern for r in self.regexes]!r})"


class AllOfMatcher(Matcher):
    """
    Conjunction of matchers.

    Matchers are evaluated in order and the first failure short-circuits.
    On success the captures of all matchers are merged, later keys
    overwriting earlier ones.
    """

    def __init__(self, matchers: Sequence[Matcher]):
        if not matchers:
            raise ValueError("AllOfMatcher requires at least one matcher")
        self.matchers: Tuple[Matcher, ...] = tuple(matchers)

    def match(self, identity: ProcessIdentity) -> MatchResult:
        merged: Dict[str, str] = {}
        for matcher in self.matchers:
            matched, captures = matcher.match(identity)
            if not matched:
                return False, {}
            merged.update(captures)
        return True, merged

    def __len__(self) -> int:
        return len(self.matchers)

    def __repr__(self) -> str:
        return f"AllOfMatcher({list(self.matchers)!r})"
