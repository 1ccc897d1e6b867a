"""Expression evaluator for an instruction-set simulator's debug monitor."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdbexpr.machine import Machine

__version__ = "0.1.0"


def evaluate(expression: str, machine: Machine | None = None) -> int:
    """Tokenize and evaluate an expression to a signed 32-bit machine word."""
    from sdbexpr.eval import evaluate as _evaluate

    return _evaluate(expression, machine)
