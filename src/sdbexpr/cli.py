"""Command-line monitor for evaluating debugger expressions."""

from __future__ import annotations

import argparse
import logging
import sys
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO

from sdbexpr.errors import EvalError, LexError
from sdbexpr.lexer import Limits
from sdbexpr.machine import DEFAULT_MEMORY_BASE, DEFAULT_MEMORY_SIZE, MemoryFault, SimpleMachine
from sdbexpr.words import WordFormat

logger = logging.getLogger(__name__)

CONFIG_NAME = "sdbexpr.toml"


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    expressions: list[str]
    registers: dict[str, int]
    memory: dict[int, int]
    memory_base: int
    memory_size: int
    word: WordFormat
    limits: Limits
    dump_tokens: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="sdbexpr",
        description="Evaluate simple-debugger expressions against a simulated machine",
    )
    p.add_argument(
        "expressions",
        nargs="*",
        metavar="EXPR",
        help="Expression to evaluate (default: read one per line from stdin)",
    )
    p.add_argument(
        "-r",
        "--reg",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set a register before evaluating (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    p.add_argument("--bits", type=int, default=None, metavar="N", help="Word width in bits")
    p.add_argument(
        "--unsigned",
        action="store_true",
        default=None,
        help="Treat words as unsigned (default: signed)",
    )
    p.add_argument(
        "--max-tokens",
        type=int,
        default=None,
        metavar="N",
        help="Token capacity per expression (default: 32, 0 = unbounded)",
    )
    p.add_argument(
        "--max-depth",
        type=int,
        default=None,
        metavar="N",
        help="Evaluation nesting limit; a chain of N operators needs N levels (default: 64, 0 = unbounded)",
    )
    p.add_argument("--tokens", action="store_true", help="Dump tokens to stderr")
    p.add_argument("-v", "--verbose", action="store_true", help="Log lexer matches to stderr")
    return p


def parse_int(s: str) -> int:
    """Parse a decimal or 0x-prefixed integer, as typed on the command line."""
    try:
        return int(s, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {s}") from None


def parse_register_arg(s: str) -> tuple[str, int]:
    """Parse a NAME=VALUE string into (name, value)."""
    if "=" not in s:
        raise argparse.ArgumentTypeError(f"invalid register format (expected NAME=VALUE): {s}")
    name, _, value = s.partition("=")
    return name, parse_int(value)


def load_config(config_path: Path | None, search_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else search_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        config = tomllib.load(f)
    logger.debug("loaded config from %s", path)
    return config


def resolve_options(args: argparse.Namespace, search_dir: Path | None = None) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, search_dir if search_dir is not None else Path("."))

    # Word format: config < CLI
    bits = 32
    signed = True
    cfg_word = config.get("word")
    if isinstance(cfg_word, dict):
        if isinstance(cfg_word.get("bits"), int):
            bits = cfg_word["bits"]
        if isinstance(cfg_word.get("signed"), bool):
            signed = cfg_word["signed"]
    if args.bits is not None:
        bits = args.bits
    if args.unsigned:
        signed = False
    try:
        word = WordFormat(bits, signed)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None

    # Limits: config < CLI; 0 disables a limit
    limit_values: dict[str, int | None] = {}
    cfg_limits = config.get("limits")
    if isinstance(cfg_limits, dict):
        for key in ("max_tokens", "max_token_text", "max_depth"):
            v = cfg_limits.get(key)
            if isinstance(v, int):
                limit_values[key] = v or None
    if args.max_tokens is not None:
        limit_values["max_tokens"] = args.max_tokens or None
    if args.max_depth is not None:
        limit_values["max_depth"] = args.max_depth or None
    limits = Limits(**limit_values)

    # Registers: config < CLI
    registers: dict[str, int] = {}
    cfg_regs = config.get("registers")
    if isinstance(cfg_regs, dict):
        for k, v in cfg_regs.items():
            if not isinstance(v, int):
                raise argparse.ArgumentTypeError(f"register {k} in config is not an integer")
            registers[str(k)] = v
    for raw in args.reg:
        name, value = parse_register_arg(raw)
        registers[name] = value

    # Memory: config only
    memory: dict[int, int] = {}
    memory_base = DEFAULT_MEMORY_BASE
    memory_size = DEFAULT_MEMORY_SIZE
    cfg_mem = config.get("memory")
    if isinstance(cfg_mem, dict):
        if isinstance(cfg_mem.get("base"), int):
            memory_base = cfg_mem["base"]
        if isinstance(cfg_mem.get("size"), int):
            memory_size = cfg_mem["size"]
        cfg_words = cfg_mem.get("words")
        if isinstance(cfg_words, dict):
            for k, v in cfg_words.items():
                if not isinstance(v, int):
                    raise argparse.ArgumentTypeError(f"memory word {k} in config is not an integer")
                memory[parse_int(str(k))] = v

    return CliOptions(
        expressions=list(args.expressions),
        registers=registers,
        memory=memory,
        memory_base=memory_base,
        memory_size=memory_size,
        word=word,
        limits=limits,
        dump_tokens=args.tokens,
        verbose=args.verbose,
    )


def build_machine(options: CliOptions) -> SimpleMachine:
    """Create the simulated machine described by the options."""
    machine = SimpleMachine(memory_base=options.memory_base, memory_size=options.memory_size)
    for name, value in options.registers.items():
        try:
            machine.set_register(name, value)
        except KeyError:
            raise argparse.ArgumentTypeError(f"unknown register: {name}") from None
    for address, value in options.memory.items():
        try:
            machine.write_memory(address, value)
        except MemoryFault as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None
    return machine


def format_value(value: int, word: WordFormat) -> str:
    return f"{value} ({word.hex(value)})"


def run_expressions(
    expressions: Iterable[str],
    options: CliOptions,
    machine: SimpleMachine,
    out: TextIO,
    err: TextIO,
) -> int:
    """Evaluate each expression, printing results to out and errors to err.

    Returns the highest exit code seen: 0 ok, 1 lex error, 2 eval error.
    """
    from sdbexpr.debug import dump_tokens
    from sdbexpr.eval import evaluate_tokens
    from sdbexpr.lexer import tokenize

    rc = 0
    for expression in expressions:
        try:
            tokens = tokenize(expression, limits=options.limits)
            if options.dump_tokens:
                dump_tokens(tokens, file=err)
            value = evaluate_tokens(
                tokens, expression, machine, word=options.word, limits=options.limits
            )
        except LexError as exc:
            print(exc.format(), file=err)
            rc = max(rc, 1)
            continue
        except EvalError as exc:
            print(exc.format(), file=err)
            rc = max(rc, 2)
            continue
        print(format_value(value, options.word), file=out)
    return rc


def _stdin_lines() -> Iterable[str]:
    for line in sys.stdin:
        line = line.strip()
        if line:
            yield line


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
        machine = build_machine(options)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(message)s",
            stream=sys.stderr,
        )

    expressions = options.expressions or _stdin_lines()
    return run_expressions(expressions, options, machine, sys.stdout, sys.stderr)
