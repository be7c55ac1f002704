"""
Process classification rules.

This module binds matchers and name templates into rules, and evaluates an
ordered list of rules against a process: the first rule that matches names
the group. A process that matches no rule is simply not reported.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from ..models.config import RuleConfig
from ..models.process import ProcessIdentity, TemplateParams
from ..validation import ConfigurationError, ValidationError, validate_regex_pattern
from .matchers import AllOfMatcher, CmdlineMatcher, CommMatcher, ExeMatcher, Matcher
from .templates import NameTemplate, compile_template

logger = logging.getLogger(__name__)


class Rule:
    """
    A conjunction of matchers plus the template that names matching processes.
    """

    def __init__(self, matcher: AllOfMatcher, template: NameTemplate):
        self.matcher = matcher
        self.template = template

    def match_and_name(self, identity: ProcessIdentity) -> Tuple[bool, str]:
        """Return ``(True, group_name)`` on a match, else ``(False, "")``."""
        matched, captures = self.matcher.match(identity)
        if not matched:
            return False, ""
        params = TemplateParams.from_identity(identity, captures)
        return True, self.template.render(params)

    def __repr__(self) -> str:
        return f"Rule({self.matcher!r}, {self.template!r})"


class RuleSet:
    """
    Rules evaluated strictly in configuration order; the first match wins.

    Immutable once built and safe to share between concurrent scrapes.
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        self.rules: Tuple[Rule, ...] = tuple(rules)

    def match_and_name(self, identity: ProcessIdentity) -> Tuple[bool, str]:
        """Classify a process.

        Args:
            identity: Command name and argument vector of the process.

        Returns:
            ``(True, group_name)`` for the first matching rule, or
            ``(False, "")`` when no rule matches. Not matching is a normal
            outcome and never raises.
        """
        for rule in self.rules:
            matched, name = rule.match_and_name(identity)
            if matched:
                return True, name
        return False, ""

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)


def build_rule(rule_config: RuleConfig) -> Rule:
    """
    Compile one validated rule entry.

    Matchers are created in the fixed order comm, exe, cmdline.

    Raises:
        ConfigurationError: If no matcher is configured, a regex does not
            compile, or the name template is invalid.
    """
    prefix = f"process_names[{rule_config.index}]"
    matchers: List[Matcher] = []

    if rule_config.comm is not None:
        matchers.append(CommMatcher(rule_config.comm))
    if rule_config.exe is not None:
        matchers.append(ExeMatcher(rule_config.exe))
    if rule_config.cmdline is not None:
        regexes = []
        for j, pattern in enumerate(rule_config.cmdline):
            try:
                regexes.append(
                    validate_regex_pattern(pattern, field_name=f"{prefix}.cmdline[{j}]")
                )
            except ValidationError as e:
                raise ConfigurationError(str(e), field_name=e.field_name, value=e.value) from e
        matchers.append(CmdlineMatcher(regexes))

    if not matchers:
        raise ConfigurationError(
            f"{prefix}: no matchers provided, expected at least one of comm, exe, cmdline",
            field_name=prefix,
        )

    try:
        template = compile_template(rule_config.name)
    except ConfigurationError as e:
        raise ConfigurationError(
            f"{prefix}.name: {e}", field_name=f"{prefix}.name", value=rule_config.name
        ) from e

    return Rule(AllOfMatcher(matchers), template)


def build_rule_set(rule_configs: Sequence[RuleConfig]) -> RuleSet:
    """Compile validated rule entries into an ordered RuleSet."""
    rule_set = RuleSet(build_rule(rule_config) for rule_config in rule_configs)
    logger.debug(f"Built rule set with {len(rule_set)} rules")
    return rule_set
