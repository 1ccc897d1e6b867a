"""Token kinds, token/span data structures, and operator classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenKind(Enum):
    NOTYPE = auto()  # whitespace, never emitted

    # Operands (carry text)
    UINT = auto()  # 123
    HEX = auto()  # 0x7b
    REG = auto()  # $a0, $$0

    # Binary operators
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /
    EQ = auto()  # ==
    NE = auto()  # !=
    AND = auto()  # &&

    # Prefix operators (reclassified from STAR / MINUS)
    DEREF = auto()  # *addr
    NEG = auto()  # -x

    LPAREN = auto()  # (
    RPAREN = auto()  # )


@dataclass(frozen=True, slots=True)
class Span:
    """Source range as 0-based character offsets, end exclusive."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token. ``text`` is empty for operators and parentheses."""

    kind: TokenKind
    text: str
    span: Span


# Kinds that keep their matched text
TEXT_KINDS = frozenset({TokenKind.UINT, TokenKind.HEX, TokenKind.REG})

BINARY_OPERATORS = frozenset(
    {
        TokenKind.PLUS,
        TokenKind.MINUS,
        TokenKind.STAR,
        TokenKind.SLASH,
        TokenKind.EQ,
        TokenKind.NE,
        TokenKind.AND,
    }
)

PREFIX_OPERATORS = frozenset({TokenKind.DEREF, TokenKind.NEG})

OPERATORS = BINARY_OPERATORS | PREFIX_OPERATORS

# A STAR or MINUS following one of these (or nothing) is in operand
# position and becomes DEREF / NEG.
OPERAND_POSITION_PREDECESSORS = frozenset(
    {
        TokenKind.PLUS,
        TokenKind.MINUS,
        TokenKind.STAR,
        TokenKind.SLASH,
        TokenKind.LPAREN,
        TokenKind.EQ,
        TokenKind.NE,
        TokenKind.AND,
    }
)

# Display form for diagnostics and token dumps
SYMBOLS: dict[TokenKind, str] = {
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.STAR: "*",
    TokenKind.SLASH: "/",
    TokenKind.EQ: "==",
    TokenKind.NE: "!=",
    TokenKind.AND: "&&",
    TokenKind.DEREF: "*",
    TokenKind.NEG: "-",
    TokenKind.LPAREN: "(",
    TokenKind.RPAREN: ")",
}


def token_display(tok: Token) -> str:
    """Return the source-like text of a token."""
    return tok.text if tok.kind in TEXT_KINDS else SYMBOLS.get(tok.kind, "")
