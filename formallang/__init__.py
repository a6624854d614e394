"""formallang — checker and reference interpreter for FormalLang.

FormalLang is a minimal imperative language whose only value type is
boolean and whose only primitive operator is NAND.  A static checker
decides whether a program is well-scoped; the interpreter runs only
programs the checker has accepted.

Submodules
----------
ast
    Frozen dataclass nodes for expressions and statements, plus
    ``walk`` / ``identifiers`` / ``declarations`` traversal helpers.

errors
    Structured error codes (``FL-XXXX``), checker ``Diagnostic`` records,
    and the ``InterpreterFault`` / ``InvariantViolation`` exceptions.

allocator
    Fresh-location strategies: the default bump counter and a
    max-scan alternative, selected by name.

checker
    Scope checker: ``check``, ``type_check_expr``, ``type_check_stmt``,
    the diagnostic-collecting ``Checker``, and the independent
    ``is_closed`` / ``has_no_redeclarations`` properties.

state
    ``RuntimeState`` — environment, freed set, memory, next location.

interpreter
    ``eval_expr``, ``eval_stmt`` and the ``run`` entry point returning a
    ``RunResult``; ``RuntimeConfig`` for the optional step budget.

parser
    S-expression surface syntax (via ``sexpdata``) and its printer.

main
    CLI entry-point with subcommands: ``check``, ``run``, ``dump-ast``.

Usage
-----
Command-line::

    python -m formallang check program.fl
    python -m formallang run program.fl --max-steps 10000

Programmatic::

    from formallang.parser import parse_program
    from formallang.checker import check
    from formallang.interpreter import run

    prog = parse_program("(seq (decl x true) (assign x (nand x x)))")
    assert check(prog) == {"x"}
    result = run(prog)

"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "ast",
    "errors",
    "allocator",
    "checker",
    "state",
    "interpreter",
    "parser",
    "main",
]
