"""Simulator collaborators: register lookup and memory read."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class MemoryFault(LookupError):
    """Raised by a machine when a read falls outside its address space."""

    def __init__(self, address: int, width: int) -> None:
        self.address = address
        self.width = width
        super().__init__(f"address 0x{address:x} (width {width}) is out of bound")


class Machine(Protocol):
    def register_value(self, name: str) -> int:
        """Return a register's value; raise KeyError for unknown names."""
        ...

    def read_memory(self, address: int, width: int) -> int:
        """Read ``width`` bytes at ``address``; raise MemoryFault when unmapped."""
        ...


# RISC-V ABI names, in register-number order
REGISTER_NAMES: tuple[str, ...] = (
    "$0", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
)  # fmt: skip

DEFAULT_MEMORY_BASE = 0x80000000
DEFAULT_MEMORY_SIZE = 0x8000000


@dataclass
class SimpleMachine:
    """In-memory register file and sparse little-endian byte memory."""

    registers: dict[str, int] = field(default_factory=dict)
    memory: dict[int, int] = field(default_factory=dict)
    memory_base: int = DEFAULT_MEMORY_BASE
    memory_size: int = DEFAULT_MEMORY_SIZE

    def __post_init__(self) -> None:
        for name in (*REGISTER_NAMES, "pc"):
            self.registers.setdefault(name, 0)

    def register_value(self, name: str) -> int:
        return self.registers[name]

    def set_register(self, name: str, value: int) -> None:
        """Set a register by ABI name, with or without the ``$`` sigil."""
        if name.startswith("$") and name[1:] in self.registers:
            name = name[1:]
        if name not in self.registers:
            raise KeyError(name)
        self.registers[name] = value

    def in_bounds(self, address: int, width: int) -> bool:
        return self.memory_base <= address and address + width <= self.memory_base + self.memory_size

    def read_memory(self, address: int, width: int) -> int:
        if not self.in_bounds(address, width):
            raise MemoryFault(address, width)
        value = 0
        for i in range(width):
            value |= self.memory.get(address + i, 0) << (8 * i)
        return value

    def write_memory(self, address: int, value: int, width: int = 4) -> None:
        if not self.in_bounds(address, width):
            raise MemoryFault(address, width)
        for i in range(width):
            self.memory[address + i] = (value >> (8 * i)) & 0xFF
