"""Watchpoints: expressions re-evaluated after each step, reporting changes."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from sdbexpr.eval import DEFAULT_DEREF_WIDTH, evaluate_tokens
from sdbexpr.lexer import DEFAULT_LIMITS, Limits, tokenize
from sdbexpr.machine import Machine
from sdbexpr.tokens import Token
from sdbexpr.words import DEFAULT_WORD, WordFormat

DEFAULT_CAPACITY = 32


class WatchpointError(Exception):
    """Raised on watch list misuse: full list or unknown number."""


@dataclass
class Watchpoint:
    number: int
    expression: str
    value: int
    tokens: tuple[Token, ...] = field(repr=False, default=())


@dataclass(frozen=True, slots=True)
class Hit:
    """A watchpoint whose value changed during a check."""

    watchpoint: Watchpoint
    old: int
    new: int


class WatchList:
    """A bounded set of watchpoints bound to one machine."""

    def __init__(
        self,
        machine: Machine,
        capacity: int = DEFAULT_CAPACITY,
        word: WordFormat = DEFAULT_WORD,
        limits: Limits = DEFAULT_LIMITS,
    ) -> None:
        self._machine = machine
        self._capacity = capacity
        self._word = word
        self._limits = limits
        self._points: dict[int, Watchpoint] = {}
        self._next_number = 0

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Watchpoint]:
        return iter(self._points.values())

    def add(self, expression: str) -> Watchpoint:
        """Tokenize and evaluate the expression once, then start watching it.

        Lex and evaluation errors propagate and leave the list unchanged.
        """
        if len(self._points) >= self._capacity:
            raise WatchpointError(f"no free watchpoint (limit {self._capacity})")
        tokens = tuple(tokenize(expression, limits=self._limits))
        value = self._evaluate(tokens, expression)
        wp = Watchpoint(self._next_number, expression, value, tokens)
        self._points[wp.number] = wp
        self._next_number += 1
        return wp

    def remove(self, number: int) -> Watchpoint:
        try:
            return self._points.pop(number)
        except KeyError:
            raise WatchpointError(f"no watchpoint number {number}") from None

    def check(self) -> list[Hit]:
        """Re-evaluate every watchpoint; return those whose value changed.

        If any evaluation fails the error propagates and no stored value is
        updated, so a later successful check still reports every change.
        """
        values = [(wp, self._evaluate(wp.tokens, wp.expression)) for wp in self._points.values()]
        hits = []
        for wp, new in values:
            if new != wp.value:
                hits.append(Hit(wp, wp.value, new))
                wp.value = new
        return hits

    def _evaluate(self, tokens: tuple[Token, ...], expression: str) -> int:
        return evaluate_tokens(
            tokens,
            expression,
            self._machine,
            word=self._word,
            limits=self._limits,
            deref_width=DEFAULT_DEREF_WIDTH,
        )
