"""formallang/parser.py – S-expression → FormalLang AST reader and printer.

Converts the output of ``sexpdata`` (nested Python lists and
:class:`sexpdata.Symbol` values) into the AST nodes defined in
:mod:`formallang.ast`, and prints AST nodes back in canonical form.

Design principles
-----------------
* **Single-pass, recursive-descent** over the S-expression tree.
* **Head-symbol dispatch** – every list ``(tag ...)`` is dispatched on
  ``tag`` to a dedicated ``_<tag>`` reader method.
* **No implicit coercions** – numbers, strings and quoted forms are
  errors, not silently ignored.

Surface syntax
--------------
::

    expr := true | false | <name> | (nand expr expr)

    stmt := (decl <name> expr)
          | (assign <name> expr)
          | (if expr stmt)
          | (while expr stmt)
          | (seq stmt stmt ...)      ;; n-ary, folds to the right
          | (free <name>)

A file holding several top-level statements is read as their ``seq``.
Line comments start with ``;``.

Public API
----------
``parse_program(text, filename=...) -> Stmt``
``parse_expr(text) -> Expr``
``to_sexp(node) -> str``            canonical single-line form
``format_program(node) -> str``     indented multi-line form
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List

import sexpdata
from sexpdata import Symbol

from formallang import ast as A
from formallang.errors import FormalLangErrorCodes as Codes
from formallang.errors import ParseError

# Type alias for raw sexpdata output
Sexp = Any  # Union[list, Symbol, str, int, float]

KEYWORDS = frozenset(
    {"true", "false", "nand", "decl", "assign", "if", "while", "seq", "free"}
)

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

def _sym_name(s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        return str(s)
    raise ParseError(f"expected symbol, got {_describe(s)}", Codes.UNKNOWN_FORM)


def _describe(s: Sexp) -> str:
    if isinstance(s, list):
        return f"form {_dumps(s)}"
    return f"{type(s).__name__} {s!r}"


def _dumps(s: Sexp) -> str:
    try:
        return sexpdata.dumps(s)
    except Exception:  # pragma: no cover – only used in messages
        return repr(s)


def _head(s: list) -> str:
    if not s:
        raise ParseError("unexpected empty form ()", Codes.UNKNOWN_FORM)
    return _sym_name(s[0])


def _expect_arity(s: list, n: int) -> None:
    if len(s) != n + 1:
        raise ParseError(
            f"({_head(s)} ...) takes {n} argument{'s' if n != 1 else ''}, "
            f"got {len(s) - 1}: {_dumps(s)}",
            Codes.WRONG_ARITY,
        )


def _name(s: Sexp) -> A.Name:
    if not isinstance(s, Symbol):
        raise ParseError(f"expected a variable name, got {_describe(s)}", Codes.INVALID_NAME)
    name = str(s)
    if name in KEYWORDS:
        raise ParseError(f"'{name}' is a keyword and cannot name a variable", Codes.INVALID_NAME)
    if not _NAME_RE.match(name):
        raise ParseError(f"invalid variable name '{name}'", Codes.INVALID_NAME)
    return name


class _Reader:
    """Maps raw S-expressions to AST nodes.

    sexpdata does not report positions, so every node is stamped with a
    ``SourceLoc`` that carries only the file name (line and column are 0).
    """

    def __init__(self, filename: str) -> None:
        self.loc = A.SourceLoc(file=filename)

    # -- expressions ------------------------------------------------------

    def expr(self, s: Sexp) -> A.Expr:
        if isinstance(s, Symbol):
            word = str(s)
            if word == "true":
                return A.TrueLit(loc=self.loc)
            if word == "false":
                return A.FalseLit(loc=self.loc)
            return A.Ident(_name(s), loc=self.loc)
        if isinstance(s, list):
            tag = _head(s)
            if tag == "nand":
                _expect_arity(s, 2)
                return A.Nand(self.expr(s[1]), self.expr(s[2]), loc=self.loc)
            raise ParseError(f"unknown expression form ({tag} ...)", Codes.UNKNOWN_FORM)
        raise ParseError(f"expected an expression, got {_describe(s)}", Codes.UNKNOWN_FORM)

    # -- statements -------------------------------------------------------

    def stmt(self, s: Sexp) -> A.Stmt:
        if not isinstance(s, list):
            raise ParseError(f"expected a statement form, got {_describe(s)}", Codes.UNKNOWN_FORM)
        tag = _head(s)
        handler = _STMT_DISPATCH.get(tag)
        if handler is None:
            raise ParseError(f"unknown statement form ({tag} ...)", Codes.UNKNOWN_FORM)
        return handler(self, s)

    def _decl(self, s: list) -> A.Decl:
        _expect_arity(s, 2)
        return A.Decl(_name(s[1]), self.expr(s[2]), loc=self.loc)

    def _assign(self, s: list) -> A.Assign:
        _expect_arity(s, 2)
        return A.Assign(_name(s[1]), self.expr(s[2]), loc=self.loc)

    def _if(self, s: list) -> A.If:
        _expect_arity(s, 2)
        return A.If(self.expr(s[1]), self.stmt(s[2]), loc=self.loc)

    def _while(self, s: list) -> A.While:
        _expect_arity(s, 2)
        return A.While(self.expr(s[1]), self.stmt(s[2]), loc=self.loc)

    def _seq(self, s: list) -> A.Stmt:
        if len(s) < 2:
            raise ParseError("(seq ...) needs at least one statement", Codes.WRONG_ARITY)
        return self.sequence([self.stmt(c) for c in s[1:]])

    def _free(self, s: list) -> A.Free:
        _expect_arity(s, 1)
        return A.Free(_name(s[1]), loc=self.loc)

    def sequence(self, stmts: List[A.Stmt]) -> A.Stmt:
        result = stmts[-1]
        for stmt in reversed(stmts[:-1]):
            result = A.Seq(stmt, result, loc=self.loc)
        return result


_STMT_DISPATCH: Dict[str, Callable[[_Reader, list], A.Stmt]] = {
    "decl": _Reader._decl,
    "assign": _Reader._assign,
    "if": _Reader._if,
    "while": _Reader._while,
    "seq": _Reader._seq,
    "free": _Reader._free,
}


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def _read_all(text: str) -> List[Sexp]:
    # sexpdata reads a single form, so the stream is wrapped in a list.
    # The newlines keep a trailing ``;`` comment from eating the closer.
    # Disable nil/true/false auto-mapping so that ``true`` / ``false``
    # stay Symbols for our own interpretation.
    try:
        return sexpdata.loads(f"(\n{text}\n)", nil=None, true=None, false=None)
    except Exception as e:
        raise ParseError(f"S-expression syntax error: {e}", Codes.MALFORMED_SEXP) from e


def parse_program(text: str, *, filename: str = "<string>") -> A.Stmt:
    """Parse a complete program.

    Several top-level statements are combined with ``seq``.

    Raises
    ------
    ParseError
        If the text is not well-formed or does not match the grammar.
    """
    forms = _read_all(text)
    if not forms:
        raise ParseError("program is empty", Codes.EMPTY_PROGRAM, A.SourceLoc(file=filename))
    reader = _Reader(filename)
    try:
        return reader.sequence([reader.stmt(f) for f in forms])
    except ParseError as e:
        if e.loc is A.NO_LOC:
            e.loc = reader.loc
        raise


def parse_expr(text: str) -> A.Expr:
    """Parse a standalone expression (useful for REPL/tests)."""
    forms = _read_all(text)
    if len(forms) != 1:
        raise ParseError(
            f"expected exactly one expression, got {len(forms)}", Codes.MALFORMED_SEXP
        )
    return _Reader("<string>").expr(forms[0])


# ═══════════════════════════════════════════════════════════════════════
#  Printer
# ═══════════════════════════════════════════════════════════════════════

def _seq_items(stmt: A.Stmt) -> List[A.Stmt]:
    items: List[A.Stmt] = []
    while isinstance(stmt, A.Seq):
        items.append(stmt.first)
        stmt = stmt.second
    items.append(stmt)
    return items


def to_sexp(node: A.Node) -> str:
    """Canonical single-line S-expression for *node*.

    Right-nested ``Seq`` chains print as one n-ary ``(seq ...)``, which
    reads back to the same tree.
    """
    if isinstance(node, A.TrueLit):
        return "true"
    if isinstance(node, A.FalseLit):
        return "false"
    if isinstance(node, A.Ident):
        return node.name
    if isinstance(node, A.Nand):
        return f"(nand {to_sexp(node.left)} {to_sexp(node.right)})"
    if isinstance(node, A.Decl):
        return f"(decl {node.name} {to_sexp(node.value)})"
    if isinstance(node, A.Assign):
        return f"(assign {node.target} {to_sexp(node.value)})"
    if isinstance(node, A.If):
        return f"(if {to_sexp(node.cond)} {to_sexp(node.body)})"
    if isinstance(node, A.While):
        return f"(while {to_sexp(node.cond)} {to_sexp(node.body)})"
    if isinstance(node, A.Seq):
        return "(seq " + " ".join(to_sexp(s) for s in _seq_items(node)) + ")"
    if isinstance(node, A.Free):
        return f"(free {node.name})"
    raise TypeError(f"not a FormalLang node: {node!r}")


def format_program(node: A.Node, indent: int = 2) -> str:
    """Multi-line rendering: block bodies and ``seq`` items on their own lines."""
    lines: List[str] = []
    _format(node, 0, indent, lines)
    return "\n".join(lines)


def _format(node: A.Node, depth: int, indent: int, out: List[str]) -> None:
    pad = " " * (depth * indent)
    if isinstance(node, A.Seq):
        out.append(f"{pad}(seq")
        for item in _seq_items(node):
            _format(item, depth + 1, indent, out)
        out[-1] += ")"
    elif isinstance(node, (A.If, A.While)):
        keyword = "if" if isinstance(node, A.If) else "while"
        out.append(f"{pad}({keyword} {to_sexp(node.cond)}")
        _format(node.body, depth + 1, indent, out)
        out[-1] += ")"
    else:
        out.append(pad + to_sexp(node))
