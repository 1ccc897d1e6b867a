"""Error types with formatted source context."""

from __future__ import annotations

from sdbexpr.tokens import Span


class PatternTableError(RuntimeError):
    """Raised when the pattern table cannot be compiled. Not recoverable."""


def _caret_block(message: str, source: str, column: int, width: int, name: str) -> str:
    # Expressions are single-line; only the first line is shown.
    source_line = source.splitlines()[0] if source else ""
    pad = " " * column
    carets = "^" * max(1, width)
    return (
        f"error: {message}\n"
        f"  --> {name}:1:{column + 1}\n"
        f"   |\n"
        f" 1 | {source_line}\n"
        f"   | {pad}{carets}"
    )


class LexError(Exception):
    """Raised when no rule matches at a scan position."""

    def __init__(self, message: str, position: int, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    @property
    def remaining(self) -> str:
        """The unconsumed input starting at the failing position."""
        return self.source[self.position :]

    def format(self, name: str = "expr") -> str:
        return _caret_block(self.message, self.source, self.position, 1, name)


class CapacityExceeded(LexError):
    """Raised when a token's text or the token sequence exceeds its limit."""

    def __init__(self, message: str, position: int, source: str, limit: int) -> None:
        self.limit = limit
        super().__init__(message, position, source)


class EvalError(Exception):
    """Raised on evaluation errors, with span and source context."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    def format(self, name: str = "expr") -> str:
        width = self.span.end - self.span.start
        return _caret_block(self.message, self.source, self.span.start, width, name)


class EmptyRange(EvalError):
    """An operand is missing, e.g. ``1+`` or ``()``."""


class MalformedOperand(EvalError):
    """A single token that is not a literal or register stands as an operand."""


class NoOperator(EvalError):
    """A multi-token range has no top-level operator to split on."""


class UnbalancedParens(EvalError):
    """A parenthesis has no partner."""


class UnknownRegister(EvalError):
    """The register lookup did not recognise the name."""

    def __init__(self, message: str, span: Span, source: str, name: str) -> None:
        self.name = name
        super().__init__(message, span, source)


class DivisionByZero(EvalError):
    """The right operand of ``/`` evaluated to zero."""


class BadAddress(EvalError):
    """A dereference read outside simulated memory."""

    def __init__(self, message: str, span: Span, source: str, address: int) -> None:
        self.address = address
        super().__init__(message, span, source)


class NestingTooDeep(EvalError):
    """Recursion exceeded the configured depth limit."""
