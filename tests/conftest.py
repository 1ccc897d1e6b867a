"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from sdbexpr.lexer import tokenize
from sdbexpr.machine import SimpleMachine
from sdbexpr.tokens import Token, TokenKind


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns the token list."""

    def _lex(source: str) -> list[Token]:
        return tokenize(source)

    return _lex


@pytest.fixture
def machine() -> SimpleMachine:
    """A machine with a few registers and words set."""
    m = SimpleMachine()
    m.set_register("a0", 5)
    m.set_register("a1", 7)
    m.set_register("sp", 0x80001000)
    m.set_register("pc", 0x80000000)
    m.set_register("$0", 0)
    m.write_memory(0x80000000, 0x00000297)
    m.write_memory(0x80001000, 42)
    m.write_memory(0x80001004, 0x80001000)
    return m


def assert_kinds(tokens: list[Token], expected: list[TokenKind]) -> None:
    """Assert that the token kinds match the expected list."""
    actual = [t.kind for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_texts(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token texts match the expected list."""
    actual = [t.text for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"
