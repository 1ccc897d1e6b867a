"""Tests for the CLI module: arg parsing, exit codes, output, end-to-end."""

from __future__ import annotations

import argparse
import io
from pathlib import Path

import pytest

from sdbexpr.cli import (
    build_machine,
    build_parser,
    format_value,
    main,
    parse_int,
    parse_register_arg,
    resolve_options,
    run_expressions,
)
from sdbexpr.words import WordFormat

# ---------------------------------------------------------------------------
# Argument parsing helpers
# ---------------------------------------------------------------------------


class TestParseHelpers:
    def test_parse_register_arg_decimal(self) -> None:
        assert parse_register_arg("a0=5") == ("a0", 5)

    def test_parse_register_arg_hex(self) -> None:
        assert parse_register_arg("sp=0x80001000") == ("sp", 0x80001000)

    def test_parse_register_arg_negative(self) -> None:
        assert parse_register_arg("t0=-1") == ("t0", -1)

    def test_parse_register_arg_no_equals_raises(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_register_arg("a0")

    def test_parse_register_arg_bad_value_raises(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="invalid integer"):
            parse_register_arg("a0=zz")

    def test_parse_int(self) -> None:
        assert parse_int("0x10") == 16
        assert parse_int("10") == 10


# ---------------------------------------------------------------------------
# Arg parsing via build_parser
# ---------------------------------------------------------------------------


class TestArgParsing:
    def test_expressions(self) -> None:
        ns = build_parser().parse_args(["1+2", "$a0"])
        assert ns.expressions == ["1+2", "$a0"]

    def test_no_expressions(self) -> None:
        ns = build_parser().parse_args([])
        assert ns.expressions == []

    def test_register_flags(self) -> None:
        ns = build_parser().parse_args(["-r", "a0=1", "--reg", "a1=2", "$a0"])
        assert ns.reg == ["a0=1", "a1=2"]

    def test_word_flags(self) -> None:
        ns = build_parser().parse_args(["--bits", "64", "--unsigned", "1"])
        assert ns.bits == 64
        assert ns.unsigned is True

    def test_tokens_and_verbose(self) -> None:
        ns = build_parser().parse_args(["--tokens", "-v", "1"])
        assert ns.tokens is True
        assert ns.verbose is True


# ---------------------------------------------------------------------------
# Options and machine construction
# ---------------------------------------------------------------------------


class TestResolveOptions:
    def test_defaults(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(["1"])
        opts = resolve_options(ns, tmp_path)
        assert opts.word == WordFormat(32, True)
        assert opts.limits.max_tokens == 32
        assert opts.registers == {}

    def test_max_tokens_zero_is_unbounded(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(["--max-tokens", "0", "1"])
        assert resolve_options(ns, tmp_path).limits.max_tokens is None

    def test_max_depth_zero_is_unbounded(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(["--max-depth", "0", "1"])
        assert resolve_options(ns, tmp_path).limits.max_depth is None

    def test_bad_bits(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(["--bits", "0", "1"])
        with pytest.raises(argparse.ArgumentTypeError):
            resolve_options(ns, tmp_path)

    def test_unknown_register_rejected(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(["-r", "x99=1", "1"])
        opts = resolve_options(ns, tmp_path)
        with pytest.raises(argparse.ArgumentTypeError, match="unknown register"):
            build_machine(opts)

    def test_register_with_sigil(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(["-r", "$a0=3", "1"])
        machine = build_machine(resolve_options(ns, tmp_path))
        assert machine.register_value("a0") == 3


# ---------------------------------------------------------------------------
# Evaluation loop
# ---------------------------------------------------------------------------


def _run(args: list[str], tmp_path: Path) -> tuple[int, str, str]:
    opts = resolve_options(build_parser().parse_args(args), tmp_path)
    out, err = io.StringIO(), io.StringIO()
    rc = run_expressions(opts.expressions, opts, build_machine(opts), out, err)
    return rc, out.getvalue(), err.getvalue()


class TestRunExpressions:
    def test_prints_decimal_and_hex(self, tmp_path: Path) -> None:
        rc, out, _ = _run(["1+2*3"], tmp_path)
        assert rc == 0
        assert out == "7 (0x00000007)\n"

    def test_negative_value_hex_is_unsigned(self, tmp_path: Path) -> None:
        rc, out, _ = _run(["--", "1-2-3"], tmp_path)
        assert out == "-4 (0xfffffffc)\n"

    def test_registers(self, tmp_path: Path) -> None:
        rc, out, _ = _run(["-r", "a0=6", "$a0*7"], tmp_path)
        assert out.startswith("42 ")

    def test_lex_error_exit_1(self, tmp_path: Path) -> None:
        rc, out, err = _run(["1 @ 2"], tmp_path)
        assert rc == 1
        assert out == ""
        assert err.startswith("error:")

    def test_eval_error_exit_2(self, tmp_path: Path) -> None:
        rc, _, err = _run(["1/0"], tmp_path)
        assert rc == 2
        assert "division by zero" in err

    def test_continues_after_error(self, tmp_path: Path) -> None:
        rc, out, _ = _run(["$bogus", "2"], tmp_path)
        assert rc == 2
        assert out.startswith("2 ")

    def test_token_dump(self, tmp_path: Path) -> None:
        _, _, err = _run(["--tokens", "*$sp"], tmp_path)
        assert "DEREF" in err
        assert "REG" in err

    def test_long_chain_needs_depth_limit_lifted(self, tmp_path: Path) -> None:
        chain = "+".join(["1"] * 70)
        rc, _, err = _run(["--max-tokens", "0", chain], tmp_path)
        assert rc == 2
        assert "nests deeper" in err
        rc, out, _ = _run(["--max-tokens", "0", "--max-depth", "0", chain], tmp_path)
        assert rc == 0
        assert out == "70 (0x00000046)\n"

    def test_format_value_64_bit(self) -> None:
        assert format_value(-1, WordFormat(64)) == "-1 (0xffffffffffffffff)"


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["2*3==6"]) == 0
        assert capsys.readouterr().out == "1 (0x00000001)\n"

    def test_bad_register_arg(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-r", "nope", "1"]) == 2
        assert "NAME=VALUE" in capsys.readouterr().err

    def test_reads_stdin(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("1+1\n\n  2*2  \n"))
        assert main([]) == 0
        assert capsys.readouterr().out.splitlines() == ["2 (0x00000002)", "4 (0x00000004)"]

    def test_lex_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["1 # 2"]) == 1
        assert "no match" in capsys.readouterr().err
