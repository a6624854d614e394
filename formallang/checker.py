"""
FormalLang Scope Checker

Static, memory-independent pass deciding whether a program is
well-scoped, and if so which names are in scope after it.

Rules (``vars`` is the set of names in scope):

* ``true`` / ``false``       – always accepted.
* ``nand l r``               – accepted iff both sides are.
* ``x``                      – accepted iff ``x ∈ vars``.
* ``decl x e``               – rejected if ``x ∈ vars`` (no redeclaration);
                               otherwise accepted iff ``e`` is, giving
                               ``vars ∪ {x}``.
* ``assign x e``             – accepted iff ``x ∈ vars`` and ``e`` is;
                               gives ``vars``.
* ``if c s`` / ``while c s`` – accepted iff ``c`` and ``s`` are; gives the
                               *original* ``vars`` (body declarations do
                               not leak out of the block).
* ``seq a b``                – checks ``b`` under the output of ``a``.
* ``free x``                 – accepted iff ``x ∈ vars``; gives ``vars``.
                               The name is deliberately *not* removed: the
                               checker cannot know whether a conditional
                               ``free`` ran, so a later use of a
                               conditionally freed name is accepted here
                               and can still fault at run time.

Two read-only properties are provided separately so that tests can
confirm acceptance implies them: ``is_closed`` and
``has_no_redeclarations``.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List, Optional

from formallang import ast as A
from formallang.errors import Diagnostic, ErrorCode, FormalLangErrorCodes

logger = logging.getLogger(__name__)

Variables = FrozenSet[A.Name]

EMPTY_SCOPE: Variables = frozenset()


def _scope(vars: Optional[Iterable[A.Name]]) -> Variables:
    if vars is None:
        return EMPTY_SCOPE
    return vars if isinstance(vars, frozenset) else frozenset(vars)


class Checker:
    """Scope checker that remembers why it rejected a program.

    Checking stops at the first failing node; ``diagnostics`` then holds
    exactly one entry describing it.  A checker instance can be reused –
    each ``check_*`` call starts with a fresh diagnostic list.
    """

    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []

    # -- public API -------------------------------------------------------

    def check_expr(self, expr: A.Expr, vars: Optional[Iterable[A.Name]] = None) -> bool:
        self.diagnostics = []
        return self._expr(expr, _scope(vars))

    def check_stmt(
        self, stmt: A.Stmt, vars: Optional[Iterable[A.Name]] = None
    ) -> Optional[Variables]:
        self.diagnostics = []
        result = self._stmt(stmt, _scope(vars))
        if result is None and self.diagnostics:
            logger.debug("rejected: %s", self.diagnostics[0].to_gcc_format())
        return result

    # -- rules ------------------------------------------------------------

    def _reject(self, code: ErrorCode, name: A.Name, node: A.Node) -> None:
        self.diagnostics.append(Diagnostic(code=code, name=name, node=node, loc=node.loc))

    def _expr(self, expr: A.Expr, vars: Variables) -> bool:
        if isinstance(expr, (A.TrueLit, A.FalseLit)):
            return True
        if isinstance(expr, A.Nand):
            return self._expr(expr.left, vars) and self._expr(expr.right, vars)
        if isinstance(expr, A.Ident):
            if expr.name in vars:
                return True
            self._reject(FormalLangErrorCodes.UNDECLARED_VARIABLE, expr.name, expr)
            return False
        raise TypeError(f"not an expression: {expr!r}")

    def _stmt(self, stmt: A.Stmt, vars: Variables) -> Optional[Variables]:
        # Walk the right spine of Seq chains iteratively; long programs
        # are built as deeply right-nested Seqs.
        while isinstance(stmt, A.Seq):
            vars = self._stmt(stmt.first, vars)
            if vars is None:
                return None
            stmt = stmt.second

        if isinstance(stmt, A.Decl):
            if stmt.name in vars:
                self._reject(FormalLangErrorCodes.REDECLARED_VARIABLE, stmt.name, stmt)
                return None
            if not self._expr(stmt.value, vars):
                return None
            return vars | {stmt.name}

        if isinstance(stmt, A.Assign):
            if stmt.target not in vars:
                self._reject(FormalLangErrorCodes.UNDECLARED_VARIABLE, stmt.target, stmt)
                return None
            return vars if self._expr(stmt.value, vars) else None

        if isinstance(stmt, (A.If, A.While)):
            if not self._expr(stmt.cond, vars):
                return None
            if self._stmt(stmt.body, vars) is None:
                return None
            return vars

        if isinstance(stmt, A.Free):
            if stmt.name not in vars:
                self._reject(FormalLangErrorCodes.UNDECLARED_VARIABLE, stmt.name, stmt)
                return None
            return vars

        raise TypeError(f"not a statement: {stmt!r}")


# ---------------------------------------------------------------------------
# Functional entry points
# ---------------------------------------------------------------------------

def type_check_expr(expr: A.Expr, vars: Optional[Iterable[A.Name]] = None) -> bool:
    """Is every identifier in *expr* a member of *vars*?"""
    return Checker().check_expr(expr, vars)


def type_check_stmt(
    stmt: A.Stmt, vars: Optional[Iterable[A.Name]] = None
) -> Optional[Variables]:
    """Check *stmt* under *vars*; the output scope, or ``None`` if rejected."""
    return Checker().check_stmt(stmt, vars)


def is_type_checked_stmt(stmt: A.Stmt, vars: Optional[Iterable[A.Name]] = None) -> bool:
    return type_check_stmt(stmt, vars) is not None


def check(program: A.Stmt, vars: Optional[Iterable[A.Name]] = None) -> Optional[Variables]:
    """Checker entry point; *vars* defaults to the empty scope.

    ``None`` means the program is rejected and must not be run.
    """
    return type_check_stmt(program, vars)


def diagnose(program: A.Stmt, vars: Optional[Iterable[A.Name]] = None) -> List[Diagnostic]:
    """Why *program* is rejected (empty list if it is accepted)."""
    checker = Checker()
    checker.check_stmt(program, vars)
    return checker.diagnostics


# ---------------------------------------------------------------------------
# Derived properties
# ---------------------------------------------------------------------------

def _closed_stmt(stmt: A.Stmt, vars: Variables) -> Optional[Variables]:
    while isinstance(stmt, A.Seq):
        vars = _closed_stmt(stmt.first, vars)
        if vars is None:
            return None
        stmt = stmt.second
    if isinstance(stmt, A.Decl):
        # redeclaration is tolerated here
        return vars | {stmt.name} if is_closed(stmt.value, vars) else None
    if isinstance(stmt, A.Assign):
        return vars if stmt.target in vars and is_closed(stmt.value, vars) else None
    if isinstance(stmt, (A.If, A.While)):
        ok = is_closed(stmt.cond, vars) and _closed_stmt(stmt.body, vars) is not None
        return vars if ok else None
    if isinstance(stmt, A.Free):
        return vars if stmt.name in vars else None
    raise TypeError(f"not a statement: {stmt!r}")


def is_closed(node: A.Node, vars: Optional[Iterable[A.Name]] = None) -> bool:
    """Does every variable use in *node* resolve to a name in scope?

    Scope grows through ``Seq`` and is discarded at ``If`` / ``While``
    exit, as in the checker, but redeclaring a name is not an error.
    """
    scope = _scope(vars)
    if A.is_expr(node):
        return all(name in scope for name in A.identifiers(node))
    return _closed_stmt(node, scope) is not None


def _unique_stmt(stmt: A.Stmt, vars: Variables) -> Optional[Variables]:
    while isinstance(stmt, A.Seq):
        vars = _unique_stmt(stmt.first, vars)
        if vars is None:
            return None
        stmt = stmt.second
    if isinstance(stmt, A.Decl):
        return None if stmt.name in vars else vars | {stmt.name}
    if isinstance(stmt, (A.If, A.While)):
        return vars if _unique_stmt(stmt.body, vars) is not None else None
    if isinstance(stmt, (A.Assign, A.Free)):
        return vars
    raise TypeError(f"not a statement: {stmt!r}")


def has_no_redeclarations(stmt: A.Stmt, vars: Optional[Iterable[A.Name]] = None) -> bool:
    """Does every ``Decl`` in *stmt* introduce a name new to its scope?

    Unbound references are ignored; only declarations are examined.
    """
    return _unique_stmt(stmt, _scope(vars)) is not None
