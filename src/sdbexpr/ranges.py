"""Range utilities over an immutable token sequence and inclusive indices."""

from __future__ import annotations

from collections.abc import Sequence

from sdbexpr.tokens import OPERATORS, Token, TokenKind

# Lower binds looser; the loosest operator becomes the split point.
_PRIORITY: dict[TokenKind, int] = {
    TokenKind.AND: 0,
    TokenKind.EQ: 1,
    TokenKind.NE: 1,
    TokenKind.PLUS: 2,
    TokenKind.MINUS: 2,
    TokenKind.STAR: 3,
    TokenKind.SLASH: 3,
    TokenKind.DEREF: 4,
    TokenKind.NEG: 4,
}


def priority(op: TokenKind) -> int:
    """Return the binding priority of an operator kind (0 = loosest)."""
    try:
        return _PRIORITY[op]
    except KeyError:
        raise ValueError(f"{op.name} is not an operator") from None


def is_fully_parenthesized(tokens: Sequence[Token], p: int, q: int) -> bool:
    """True iff tokens[p] and tokens[q] are a matching pair enclosing p..q.

    ``(1+2)`` is; ``(1)+(2)`` is not, because the depth inside the outer
    pair goes negative.
    """
    if tokens[p].kind is not TokenKind.LPAREN or tokens[q].kind is not TokenKind.RPAREN:
        return False
    depth = 0
    for i in range(p + 1, q):
        kind = tokens[i].kind
        if kind is TokenKind.LPAREN:
            depth += 1
        elif kind is TokenKind.RPAREN:
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def find_main_operator(tokens: Sequence[Token], p: int, q: int) -> int | None:
    """Return the index of the split operator in p..q, or None.

    Only depth-0 operators are candidates. Ties go to the later index, so
    same-priority binary operators associate to the left.
    """
    best: int | None = None
    best_priority = 0
    depth = 0
    for i in range(p, q + 1):
        kind = tokens[i].kind
        if kind is TokenKind.LPAREN:
            depth += 1
        elif kind is TokenKind.RPAREN:
            depth -= 1
        elif kind in OPERATORS and depth == 0:
            prio = _PRIORITY[kind]
            if best is None or prio <= best_priority:
                best = i
                best_priority = prio
    return best


def find_unbalanced(tokens: Sequence[Token]) -> int | None:
    """Return the index of the first unmatched parenthesis, or None."""
    stack: list[int] = []
    for i, tok in enumerate(tokens):
        if tok.kind is TokenKind.LPAREN:
            stack.append(i)
        elif tok.kind is TokenKind.RPAREN:
            if not stack:
                return i
            stack.pop()
    return stack[0] if stack else None
