"""Minimal LSP server for watch files — diagnostics only.

A watch file holds one expression per line; blank lines and lines starting
with ``#`` are ignored.
"""

from __future__ import annotations

import logging

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from sdbexpr import __version__
from sdbexpr.errors import BadAddress, DivisionByZero, EvalError, LexError, UnknownRegister
from sdbexpr.eval import evaluate_tokens
from sdbexpr.lexer import tokenize
from sdbexpr.machine import REGISTER_NAMES
from sdbexpr.tokens import Span, Token, TokenKind

logger = logging.getLogger(__name__)

server = LanguageServer("sdbexpr-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)

_KNOWN_REGISTERS = frozenset((*REGISTER_NAMES, "pc"))


class _ProbeMachine:
    """Stands in for the simulator: known registers and all memory read as 1."""

    def register_value(self, name: str) -> int:
        if name not in _KNOWN_REGISTERS:
            raise KeyError(name)
        return 1

    def read_memory(self, address: int, width: int) -> int:
        return 1


def _range(line: int, span: Span) -> Range:
    return Range(
        start=Position(line=line, character=span.start),
        end=Position(line=line, character=max(span.end, span.start + 1)),
    )


def _unknown_register(line: int, tokens: list[Token]) -> Diagnostic | None:
    """Return a warning for the first register name the probe does not know."""
    for tok in tokens:
        if tok.kind is TokenKind.REG and tok.text[1:] not in _KNOWN_REGISTERS:
            return Diagnostic(
                range=_range(line, tok.span),
                message=f"unknown register '{tok.text}'",
                severity=DiagnosticSeverity.Warning,
                source="sdbexpr",
            )
    return None


def check_line(line: int, text: str) -> Diagnostic | None:
    """Return a diagnostic for one watch expression, or None if it is clean."""
    try:
        tokens = tokenize(text)
        evaluate_tokens(tokens, text, _ProbeMachine())
    except LexError as exc:
        return Diagnostic(
            range=_range(line, Span(exc.position, exc.position + 1)),
            message=exc.message,
            severity=DiagnosticSeverity.Error,
            source="sdbexpr",
        )
    except UnknownRegister as exc:
        return Diagnostic(
            range=_range(line, exc.span),
            message=exc.message,
            severity=DiagnosticSeverity.Warning,
            source="sdbexpr",
        )
    except (DivisionByZero, BadAddress):
        # Depend on run-time values the probe cannot know, but may have
        # stopped evaluation before every register was looked up.
        return _unknown_register(line, tokens)
    except EvalError as exc:
        return Diagnostic(
            range=_range(line, exc.span),
            message=exc.message,
            severity=DiagnosticSeverity.Error,
            source="sdbexpr",
        )
    return None


def _validate(ls: LanguageServer, uri: str) -> None:
    """Check every expression line and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    diagnostics: list[Diagnostic] = []

    for lineno, raw in enumerate(doc.source.splitlines()):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        # Keep leading whitespace so spans line up with the document.
        diag = check_line(lineno, raw.rstrip())
        if diag is not None:
            diagnostics.append(diag)

    logger.debug("%s: %d diagnostic(s)", uri, len(diagnostics))
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
