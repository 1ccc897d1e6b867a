"""Table-driven lexer: converts expression text into a token sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sdbexpr.errors import CapacityExceeded, LexError
from sdbexpr.rules import DEFAULT_TABLE, CompiledRule
from sdbexpr.tokens import (
    OPERAND_POSITION_PREDECESSORS,
    TEXT_KINDS,
    Span,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Limits:
    """Capacity limits for one evaluation. ``None`` disables a limit."""

    max_tokens: int | None = 32
    max_token_text: int | None = 31
    max_depth: int | None = 64


DEFAULT_LIMITS = Limits()


class Lexer:
    """Tokenize one expression using an ordered rule table."""

    def __init__(
        self,
        source: str,
        table: tuple[CompiledRule, ...] = DEFAULT_TABLE,
        limits: Limits = DEFAULT_LIMITS,
    ) -> None:
        self._source = source
        self._table = table
        self._limits = limits
        self._pos = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._source):
            rule, length = self._match()
            start = self._pos
            self._pos += length
            if rule.kind is TokenKind.NOTYPE:
                continue
            text = self._source[start : self._pos] if rule.kind in TEXT_KINDS else ""
            self._emit(rule.kind, text, Span(start, self._pos))
        return self._tokens

    def _match(self) -> tuple[CompiledRule, int]:
        """Return the first rule (in table order) matching at the cursor."""
        for i, rule in enumerate(self._table):
            m = rule.regex.match(self._source, self._pos)
            if m is not None:
                logger.debug(
                    "match rules[%d] = %r at position %d with len %d: %s",
                    i,
                    rule.rule.pattern,
                    self._pos,
                    m.end() - self._pos,
                    m.group(),
                )
                return rule, m.end() - self._pos
        raise LexError(f"no match at position {self._pos}", self._pos, self._source)

    def _emit(self, kind: TokenKind, text: str, span: Span) -> None:
        max_text = self._limits.max_token_text
        if max_text is not None and len(text) > max_text:
            raise CapacityExceeded(
                f"token longer than {max_text} characters", span.start, self._source, max_text
            )
        max_tokens = self._limits.max_tokens
        if max_tokens is not None and len(self._tokens) >= max_tokens:
            raise CapacityExceeded(
                f"expression has more than {max_tokens} tokens",
                span.start,
                self._source,
                max_tokens,
            )
        if kind in (TokenKind.STAR, TokenKind.MINUS):
            kind = self._disambiguate(kind)
        self._tokens.append(Token(kind, text, span))

    def _disambiguate(self, kind: TokenKind) -> TokenKind:
        # Only the immediately preceding token decides.
        if not self._tokens or self._tokens[-1].kind in OPERAND_POSITION_PREDECESSORS:
            return TokenKind.DEREF if kind is TokenKind.STAR else TokenKind.NEG
        return kind


def tokenize(
    source: str,
    table: tuple[CompiledRule, ...] = DEFAULT_TABLE,
    limits: Limits = DEFAULT_LIMITS,
) -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source, table, limits).tokenize()
