#!/usr/bin/env python3
"""formallang/main.py — CLI entry-point for FormalLang.

Usage examples
--------------
    # Check a program and print the names in scope afterwards
    python -m formallang check program.fl

    # Check, then run; print the final state
    python -m formallang run program.fl

    # Run with a step budget (for programs that may not terminate)
    python -m formallang run program.fl --max-steps 10000 --json

    # Parse a program and print its canonical S-expression
    python -m formallang dump-ast program.fl

    # Read the program from stdin
    echo '(decl x (nand true true))' | python -m formallang run -

Exit codes
----------
    0   Success (accepted; run completed).
    1   The checker rejected the program.
    2   Infrastructure failure (missing file, syntax error, bad option).
    3   The interpreter faulted.
    4   The step budget was exhausted.

The module doubles as ``python -m formallang`` via the companion
``formallang/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from formallang import __version__
from formallang.allocator import ALLOCATORS
from formallang.ast import Stmt
from formallang.checker import Checker
from formallang.errors import Diagnostic, ParseError
from formallang.interpreter import Outcome, RunResult, RuntimeConfig, run
from formallang.parser import format_program, parse_program, to_sexp

_log = logging.getLogger("formallang")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_REJECTED: int = 1
EXIT_INFRA: int = 2
EXIT_FAULT: int = 3
EXIT_BUDGET: int = 4

_OUTCOME_EXIT = {
    Outcome.COMPLETED: EXIT_OK,
    Outcome.REJECTED: EXIT_REJECTED,
    Outcome.FAULTED: EXIT_FAULT,
    Outcome.BUDGET_EXHAUSTED: EXIT_BUDGET,
}


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``formallang`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("formallang")
    root.setLevel(level)
    root.handlers[:] = [handler]


def _read_source(raw: str) -> tuple[str, str]:
    """Return ``(text, display_name)`` for a path or ``-`` (stdin)."""
    if raw == "-":
        return sys.stdin.read(), "<stdin>"
    p = Path(raw).expanduser()
    if not p.exists():
        _log.error("file not found: %s", p)
        raise SystemExit(EXIT_INFRA)
    try:
        return p.read_text(encoding="utf-8"), str(raw)
    except (OSError, UnicodeDecodeError) as e:
        _log.error("cannot read %s: %s", p, e)
        raise SystemExit(EXIT_INFRA)


def _load(raw: str) -> Stmt:
    text, name = _read_source(raw)
    try:
        return parse_program(text, filename=name)
    except ParseError as e:
        print(f"error: {e}", file=sys.stderr)
        raise SystemExit(EXIT_INFRA)


def _print_diagnostics(diagnostics: Sequence[Diagnostic], stream: TextIO) -> None:
    for d in diagnostics:
        print(d.to_gcc_format(), file=stream)
        print(f"    in: {to_sexp(d.node)}", file=stream)


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    program = _load(args.file)
    checker = Checker()
    scope = checker.check_stmt(program)
    if args.json:
        payload = {
            "accepted": scope is not None,
            "scope": sorted(scope) if scope is not None else None,
            "diagnostics": [d.to_dict() for d in checker.diagnostics],
        }
        print(json.dumps(payload, indent=2))
    elif scope is None:
        print("rejected")
        _print_diagnostics(checker.diagnostics, sys.stdout)
    else:
        names = ", ".join(sorted(scope)) or "(none)"
        print(f"accepted; in scope: {names}")
    return EXIT_OK if scope is not None else EXIT_REJECTED


def cmd_run(args: argparse.Namespace) -> int:
    program = _load(args.file)
    config = RuntimeConfig(
        max_steps=args.max_steps,
        check_invariants=args.check_invariants,
        allocator=args.allocator,
    )
    result = run(program, config)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)
    return _OUTCOME_EXIT[result.outcome]


def _print_result(result: RunResult) -> None:
    if result.outcome is Outcome.REJECTED:
        print("rejected")
        _print_diagnostics(result.diagnostics, sys.stdout)
        return
    if result.outcome is Outcome.FAULTED:
        print(f"fault: {result.fault}")
        return
    if result.outcome is Outcome.BUDGET_EXHAUSTED:
        print(f"step budget exhausted after {result.steps} steps")
    if result.state is not None:
        print(result.state.pretty())


def cmd_dump_ast(args: argparse.Namespace) -> int:
    program = _load(args.file)
    if args.flat:
        print(to_sexp(program))
    else:
        print(format_program(program, indent=args.indent))
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formallang",
        description="Scope checker and reference interpreter for FormalLang.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="increase log verbosity (-v info, -vv debug)",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    p_check = subparsers.add_parser("check", help="check a program without running it")
    p_check.add_argument("file", help="program file, or '-' for stdin")
    p_check.add_argument("--json", action="store_true", help="emit JSON")
    p_check.set_defaults(func=cmd_check)

    p_run = subparsers.add_parser("run", help="check and run a program")
    p_run.add_argument("file", help="program file, or '-' for stdin")
    p_run.add_argument(
        "--max-steps", type=int, default=None, metavar="N",
        help="stop after N statement executions (default: unbounded)",
    )
    p_run.add_argument(
        "--check-invariants", action="store_true",
        help="re-validate location invariants after every statement",
    )
    p_run.add_argument(
        "--allocator", choices=sorted(ALLOCATORS), default="bump",
        help="location allocation strategy (default: bump)",
    )
    p_run.add_argument("--json", action="store_true", help="emit JSON")
    p_run.set_defaults(func=cmd_run)

    p_dump = subparsers.add_parser("dump-ast", help="print the parsed program")
    p_dump.add_argument("file", help="program file, or '-' for stdin")
    p_dump.add_argument("--flat", action="store_true", help="print on one line")
    p_dump.add_argument("--indent", type=int, default=2, help="indent width")
    p_dump.set_defaults(func=cmd_dump_ast)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return args.func(args)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else EXIT_INFRA


if __name__ == "__main__":
    sys.exit(main())
