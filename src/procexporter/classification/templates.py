"""
Group name templates.

Templates use the ``{{.Field}}`` action syntax already found in existing
rule files, limited to a closed set of fields:

- ``{{.Comm}}``: the process command name
- ``{{.ExeBase}}``: basename of the first command-line token
- ``{{.ExeFull}}``: the first command-line token
- ``{{.Matches.<name>}}``: a named regex capture
- ``{{.Matches}}``: all captures, as ``map[k1:v1 k2:v2]``

Templates are compiled once when the configuration is loaded; all syntax
problems surface there. Rendering itself never fails.
"""

import logging
import re
from typing import List, Optional, Tuple, Union

from ..models.process import TemplateParams
from ..validation import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_NAME_TEMPLATE = "{{.ExeBase}}"

SCALAR_FIELDS = ("Comm", "ExeBase", "ExeFull")
MAP_FIELD = "Matches"

_ACTION_OPEN = "{{"
_ACTION_CLOSE = "}}"
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# A compiled template is a sequence of literal text and (field, key) references
_Part = Union[str, Tuple[str, Optional[str]]]


class NameTemplate:
    """
    A compiled group name template.

    Examples:
        >>> t = NameTemplate("{{.Comm}}-{{.Matches.role}}")
        >>> t.render(TemplateParams("proc", "proc", "proc", {"role": "ingest"}))
        'proc-ingest'
    """

    def __init__(self, source: str):
        self.source = source
        self._parts: List[_Part] = _parse(source)

    def render(self, params: TemplateParams) -> str:
        """Render the template; a missing capture renders as an empty string."""
        chunks = []
        for part in self._parts:
            if isinstance(part, str):
                chunks.append(part)
                continue

            field_name, key = part
            if field_name != MAP_FIELD:
                chunks.append(getattr(params, field_name))
            elif key is not None:
                chunks.append(params.Matches.get(key, ""))
            else:
                pairs = " ".join(f"{k}:{v}" for k, v in sorted(params.Matches.items()))
                chunks.append(f"map[{pairs}]")
        return "".join(chunks)

    def __repr__(self) -> str:
        return f"NameTemplate({self.source!r})"


def compile_template(source: Optional[str]) -> NameTemplate:
    """Compile ``source``, falling back to the default template when empty."""
    return NameTemplate(source or DEFAULT_NAME_TEMPLATE)


def _parse(source: str) -> List[_Part]:
    parts: List[_Part] = []
    position = 0

    while True:
        start = source.find(_ACTION_OPEN, position)
        if start == -1:
            if position < len(source):
                parts.append(source[position:])
            return parts

        if start > position:
            parts.append(source[position:start])

        end = source.find(_ACTION_CLOSE, start + len(_ACTION_OPEN))
        if end == -1:
            raise ConfigurationError(
                f"unclosed action at offset {start} in template {source!r}",
                field_name="name",
                value=source,
            )

        action = source[start + len(_ACTION_OPEN):end]
        parts.append(_parse_action(action, source))
        position = end + len(_ACTION_CLOSE)


def _parse_action(action: str, source: str) -> Tuple[str, Optional[str]]:
    def fail(reason: str) -> ConfigurationError:
        return ConfigurationError(
            f"{reason} in template {source!r}", field_name="name", value=source
        )

    text = action.strip()
    if not text:
        raise fail("empty action")
    if not text.startswith("."):
        raise fail(f"unsupported action {{{{{action}}}}}, expected a field such as {{{{.ExeBase}}}}")

    segments = text[1:].split(".")
    for segment in segments:
        if not _IDENTIFIER.match(segment):
            raise fail(f"bad field reference {text!r}")

    field_name = segments[0]
    if field_name in SCALAR_FIELDS:
        if len(segments) > 1:
            raise fail(f"field {field_name} has no key {segments[1]!r}")
        return field_name, None

    if field_name == MAP_FIELD:
        if len(segments) > 2:
            raise fail(f"too many keys in {text!r}")
        return field_name, (segments[1] if len(segments) == 2 else None)

    raise fail(
        f"unknown field {field_name!r}, expected one of "
        f"{list(SCALAR_FIELDS) + [MAP_FIELD]}"
    )
