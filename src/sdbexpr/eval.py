"""Recursive range evaluator: splits token ranges on their main operator."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sdbexpr.errors import (
    BadAddress,
    DivisionByZero,
    EmptyRange,
    EvalError,
    LexError,
    MalformedOperand,
    NestingTooDeep,
    NoOperator,
    UnbalancedParens,
    UnknownRegister,
)
from sdbexpr.lexer import DEFAULT_LIMITS, Limits, tokenize
from sdbexpr.machine import Machine, MemoryFault, SimpleMachine
from sdbexpr.ranges import find_main_operator, find_unbalanced, is_fully_parenthesized
from sdbexpr.rules import DEFAULT_TABLE, CompiledRule
from sdbexpr.tokens import PREFIX_OPERATORS, Span, Token, TokenKind, token_display
from sdbexpr.words import DEFAULT_WORD, WordFormat

logger = logging.getLogger(__name__)

DEFAULT_DEREF_WIDTH = 4


@dataclass
class EvalContext:
    """State carried through one evaluation. Never shared between calls."""

    source: str
    tokens: Sequence[Token]
    machine: Machine
    word: WordFormat = DEFAULT_WORD
    limits: Limits = DEFAULT_LIMITS
    deref_width: int = DEFAULT_DEREF_WIDTH
    depth: int = 0

    def span(self, p: int, q: int) -> Span:
        """Source span of tokens p..q; a zero-width span for an empty range."""
        if p <= q:
            return Span(self.tokens[p].span.start, self.tokens[q].span.end)
        if 0 <= q < len(self.tokens):
            end = self.tokens[q].span.end
            return Span(end, end)
        if 0 <= p < len(self.tokens):
            start = self.tokens[p].span.start
            return Span(start, start)
        return Span(len(self.source), len(self.source))


def evaluate(
    expression: str,
    machine: Machine | None = None,
    *,
    word: WordFormat = DEFAULT_WORD,
    limits: Limits = DEFAULT_LIMITS,
    table: tuple[CompiledRule, ...] = DEFAULT_TABLE,
    deref_width: int = DEFAULT_DEREF_WIDTH,
) -> int:
    """Tokenize and evaluate an expression, returning a machine word.

    Raises LexError (including CapacityExceeded) or an EvalError subclass.
    Without a machine, registers read as zero and memory as unwritten.
    """
    tokens = tokenize(expression, table, limits)
    return evaluate_tokens(
        tokens,
        expression,
        machine if machine is not None else SimpleMachine(),
        word=word,
        limits=limits,
        deref_width=deref_width,
    )


def evaluate_tokens(
    tokens: Sequence[Token],
    source: str,
    machine: Machine,
    *,
    word: WordFormat = DEFAULT_WORD,
    limits: Limits = DEFAULT_LIMITS,
    deref_width: int = DEFAULT_DEREF_WIDTH,
) -> int:
    """Evaluate an already tokenized expression over its full range."""
    ctx = EvalContext(source, tokens, machine, word, limits, deref_width)
    bad = find_unbalanced(tokens)
    if bad is not None:
        raise UnbalancedParens(
            f"unmatched '{token_display(tokens[bad])}'", tokens[bad].span, source
        )
    return eval_range(ctx, 0, len(tokens) - 1)


def try_evaluate(
    expression: str,
    machine: Machine | None = None,
    *,
    word: WordFormat = DEFAULT_WORD,
    limits: Limits = DEFAULT_LIMITS,
) -> tuple[int, bool]:
    """Monitor-style entry point: return (value, success) instead of raising.

    The value is 0 whenever success is False.
    """
    try:
        return evaluate(expression, machine, word=word, limits=limits), True
    except (LexError, EvalError) as exc:
        logger.debug("evaluation of %r failed: %s", expression, exc.message)
        return 0, False


# ---------------------------------------------------------------------------
# Recursive evaluation
# ---------------------------------------------------------------------------


def eval_range(ctx: EvalContext, p: int, q: int) -> int:
    """Evaluate tokens p..q (inclusive)."""
    max_depth = ctx.limits.max_depth
    if max_depth is not None and ctx.depth >= max_depth:
        raise NestingTooDeep(
            f"expression nests deeper than {max_depth} levels", ctx.span(p, q), ctx.source
        )
    ctx.depth += 1
    try:
        return _eval_range(ctx, p, q)
    finally:
        ctx.depth -= 1


def _eval_range(ctx: EvalContext, p: int, q: int) -> int:
    if p > q:
        raise EmptyRange("missing operand", ctx.span(p, q), ctx.source)

    if p == q:
        return _eval_operand(ctx, ctx.tokens[p])

    if is_fully_parenthesized(ctx.tokens, p, q):
        return eval_range(ctx, p + 1, q - 1)

    r = find_main_operator(ctx.tokens, p, q)
    if r is None:
        raise NoOperator("can't find main operator", ctx.span(p, q), ctx.source)

    right = eval_range(ctx, r + 1, q)

    op = ctx.tokens[r]
    if op.kind in PREFIX_OPERATORS:
        # Tokens left of a prefix split point have no operator to bind them.
        if r != p:
            raise MalformedOperand(
                f"unexpected '{token_display(ctx.tokens[p])}'", ctx.span(p, r - 1), ctx.source
            )
        return _apply_prefix(ctx, op, right, ctx.span(r, q))

    left = eval_range(ctx, p, r - 1)
    return _apply_binary(ctx, op, left, right, ctx.span(r + 1, q))


def _eval_operand(ctx: EvalContext, tok: Token) -> int:
    if tok.kind is TokenKind.UINT:
        return ctx.word.wrap(int(tok.text, 10))
    if tok.kind is TokenKind.HEX:
        return ctx.word.wrap(int(tok.text, 16))
    if tok.kind is TokenKind.REG:
        name = tok.text[1:]
        try:
            value = ctx.machine.register_value(name)
        except KeyError:
            raise UnknownRegister(
                f"unknown register '{tok.text}'", tok.span, ctx.source, name
            ) from None
        return ctx.word.wrap(value)
    raise MalformedOperand(
        f"expected a number or register, found '{token_display(tok)}'", tok.span, ctx.source
    )


def _apply_prefix(ctx: EvalContext, op: Token, value: int, span: Span) -> int:
    if op.kind is TokenKind.NEG:
        return ctx.word.neg(value)
    address = ctx.word.unsigned(value)
    try:
        return ctx.word.wrap(ctx.machine.read_memory(address, ctx.deref_width))
    except MemoryFault as exc:
        raise BadAddress(
            f"cannot read memory at 0x{address:x}", span, ctx.source, address
        ) from exc


def _apply_binary(ctx: EvalContext, op: Token, left: int, right: int, right_span: Span) -> int:
    word = ctx.word
    match op.kind:
        case TokenKind.PLUS:
            return word.add(left, right)
        case TokenKind.MINUS:
            return word.sub(left, right)
        case TokenKind.STAR:
            return word.mul(left, right)
        case TokenKind.SLASH:
            if right == 0:
                raise DivisionByZero("division by zero", right_span, ctx.source)
            return word.div(left, right)
        case TokenKind.EQ:
            return int(left == right)
        case TokenKind.NE:
            return int(left != right)
        case TokenKind.AND:
            return int(bool(left) and bool(right))
    raise MalformedOperand(f"'{token_display(op)}' is not a binary operator", op.span, ctx.source)
