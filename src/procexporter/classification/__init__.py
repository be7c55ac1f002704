"""
Process classification for the procexporter package.

This module decides which named group a process belongs to, using ordered,
configurable rules made of matchers and name templates.
"""

from .classifier import Rule, RuleSet, build_rule, build_rule_set
from .matchers import AllOfMatcher, CmdlineMatcher, CommMatcher, ExeMatcher, Matcher
from .templates import DEFAULT_NAME_TEMPLATE, NameTemplate, compile_template

__all__ = [
    # Rules
    "Rule",
    "RuleSet",
    "build_rule",
    "build_rule_set",
    # Matchers
    "AllOfMatcher",
    "CmdlineMatcher",
    "CommMatcher",
    "ExeMatcher",
    "Matcher",
    # Templates
    "DEFAULT_NAME_TEMPLATE",
    "NameTemplate",
    "compile_template",
]
