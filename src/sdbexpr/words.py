"""Machine-word arithmetic: fixed width, two's complement wrapping."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class WordFormat:
    """Width and signedness of the simulated machine word."""

    bits: int = 32
    signed: bool = True

    def __post_init__(self) -> None:
        if self.bits <= 0:
            raise ValueError(f"word width must be positive, got {self.bits}")

    @property
    def mask(self) -> int:
        return (1 << self.bits) - 1

    def wrap(self, value: int) -> int:
        """Reduce an arbitrary int to a word in this format's representation."""
        value &= self.mask
        if self.signed and value >> (self.bits - 1):
            value -= 1 << self.bits
        return value

    def unsigned(self, value: int) -> int:
        return value & self.mask

    def hex(self, value: int) -> str:
        digits = (self.bits + 3) // 4
        return f"0x{self.unsigned(value):0{digits}x}"

    # Operators. Operands are assumed already wrapped.

    def add(self, a: int, b: int) -> int:
        return self.wrap(a + b)

    def sub(self, a: int, b: int) -> int:
        return self.wrap(a - b)

    def mul(self, a: int, b: int) -> int:
        return self.wrap(a * b)

    def div(self, a: int, b: int) -> int:
        """Divide truncating toward zero. Caller guarantees b != 0."""
        q = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            q = -q
        return self.wrap(q)

    def neg(self, a: int) -> int:
        return self.wrap(-a)


DEFAULT_WORD = WordFormat()
