"""Pattern table: ordered (regex, kind) rules compiled once per process."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sdbexpr.errors import PatternTableError
from sdbexpr.tokens import TokenKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Rule:
    pattern: str
    kind: TokenKind


@dataclass(frozen=True, slots=True)
class CompiledRule:
    """A rule with its compiled regex. Matching is anchored at the cursor."""

    rule: Rule
    regex: re.Pattern[str]

    @property
    def kind(self) -> TokenKind:
        return self.rule.kind


# Order matters: for a given cursor position the first matching rule wins,
# so HEX must precede UINT and "==" must precede anything sharing "=".
DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(r"[ \t]+", TokenKind.NOTYPE),
    Rule(r"\+", TokenKind.PLUS),
    Rule(r"==", TokenKind.EQ),
    Rule(r"-", TokenKind.MINUS),
    Rule(r"\*", TokenKind.STAR),
    Rule(r"/", TokenKind.SLASH),
    Rule(r"\(", TokenKind.LPAREN),
    Rule(r"\)", TokenKind.RPAREN),
    Rule(r"0[xX][0-9a-fA-F]+", TokenKind.HEX),
    Rule(r"[0-9]+", TokenKind.UINT),
    Rule(r"!=", TokenKind.NE),
    Rule(r"&&", TokenKind.AND),
    Rule(r"\$\$?[A-Za-z0-9_]+", TokenKind.REG),
)


def compile_rules(rules: tuple[Rule, ...] | list[Rule]) -> tuple[CompiledRule, ...]:
    """Compile a rule table, raising PatternTableError on the first bad rule.

    A rule table that cannot be built is unrecoverable for the process, so
    the failure is logged at CRITICAL before being raised.
    """
    compiled = []
    for i, rule in enumerate(rules):
        try:
            regex = re.compile(rule.pattern)
        except re.error as exc:
            logger.critical("regex compilation failed: %s\n%s", exc, rule.pattern)
            raise PatternTableError(f"rules[{i}] {rule.pattern!r}: {exc}") from exc
        if regex.match(""):
            logger.critical("rule matches the empty string: %s", rule.pattern)
            raise PatternTableError(f"rules[{i}] {rule.pattern!r} matches the empty string")
        compiled.append(CompiledRule(rule, regex))
    return tuple(compiled)


DEFAULT_TABLE: tuple[CompiledRule, ...] = compile_rules(DEFAULT_RULES)
