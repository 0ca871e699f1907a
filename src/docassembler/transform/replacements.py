"""Regular expression replacement rules.

Two kinds of rule lists exist in a configuration: URL replacements rewrite
destination paths, content replacements rewrite Markdown text. Both are
applied in declaration order, each rule working on the output of the
previous one.

Expressions written with .NET named groups (``(?<id>...)``) and ``${id}``
substitution references are translated to their Python equivalents.
A rule that fails to compile, or whose substitution fails, is skipped with a
warning; the string it would have changed is kept as is.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from docassembler.model.config import Replacement
from docassembler.model.manifest import ReturnCode
from docassembler.stage_logger import log_error_policy

logger = logging.getLogger(__name__)

_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?<(?![=!])")
_SUBSTITUTION_RE = re.compile(r"\$\$|\$\{(\w+)\}|\$(\d+)")


def translate_expression(expression: str) -> str:
    """Convert .NET named groups to Python syntax."""
    return _NAMED_GROUP_RE.sub("(?P<", expression)


def translate_value(value: str) -> str:
    """Convert .NET substitution references to Python template syntax."""

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name is None:
            return "$"
        return f"\\g<{name}>"

    return _SUBSTITUTION_RE.sub(_sub, value)


@dataclass(frozen=True)
class CompiledRule:
    expression: str
    pattern: re.Pattern[str]
    template: str


class RuleSet:
    """An ordered list of compiled replacement rules.

    ``result`` is WARNING when a rule was skipped, at compile time or later
    while applying it.
    """

    def __init__(self, replacements: Iterable[Replacement], *, kind: str = "url") -> None:
        self.kind = kind
        self.result = ReturnCode.NORMAL
        self.rules: list[CompiledRule] = []
        self._broken: set[str] = set()
        for replacement in replacements:
            try:
                pattern = re.compile(translate_expression(replacement.expression))
            except re.error as exc:
                self._skip(replacement.expression, "invalid_expression", str(exc))
                continue
            self.rules.append(
                CompiledRule(
                    expression=replacement.expression,
                    pattern=pattern,
                    template=translate_value(replacement.value or ""),
                )
            )

    def __bool__(self) -> bool:
        return bool(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def apply(self, text: str) -> str:
        """Apply all rules in order and return the resulting string."""
        for rule in self.rules:
            if rule.expression in self._broken:
                continue
            try:
                text = rule.pattern.sub(rule.template, text)
            except (re.error, IndexError) as exc:
                self._broken.add(rule.expression)
                self._skip(rule.expression, "invalid_substitution", str(exc))
        return text

    def _skip(self, expression: str, error_type: str, details: str) -> None:
        self.result = ReturnCode.WARNING
        log_error_policy(
            f"{self.kind} replacement '{expression}'", error_type, "skip rule", details
        )


__all__ = [
    "CompiledRule",
    "RuleSet",
    "translate_expression",
    "translate_value",
]
