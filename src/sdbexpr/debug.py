"""--tokens dump to stderr."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TextIO

from sdbexpr.tokens import Token, token_display


def dump_tokens(tokens: Sequence[Token], *, file: TextIO = sys.stderr) -> None:
    """Print one line per token: index, kind, source text, and span."""
    for i, tok in enumerate(tokens):
        file.write(
            f"{i:>3} {tok.kind.name:<6} {token_display(tok)!r} [{tok.span.start}:{tok.span.end}]\n"
        )
