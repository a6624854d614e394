"""formallang/ast.py – AST definitions for FormalLang.

FormalLang has exactly one value type (boolean) and one primitive
operator (NAND).  Programs are trees of statements over named boolean
variables.  This module defines the *abstract* syntax – a tree of frozen
dataclasses that the parser produces and the checker / interpreter
consume.

Design invariants
-----------------
* Every AST node is a frozen dataclass (immutable after construction).
* Equality and hashing are structural over the node's semantic fields
  only; the ``loc`` field is excluded from comparison so that parsed
  trees and hand-built trees compare equal.
* Trees are owned by the program that contains them: no sharing is
  assumed, no cycles are possible.

Module layout
-------------
§1  Source location
§2  Expressions
§3  Statements
§4  Traversal helpers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Tuple, Union

# ════════════════════════════════════════════════════════════════════════
# §1  Source location
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SourceLoc:
    """Points back to a position in a ``.fl`` source file."""

    file: str = "<unknown>"
    line: int = 0
    col: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


#: Sentinel for nodes built in code rather than read from source.
NO_LOC = SourceLoc()

#: Variable names are plain strings supplied by program source.
Name = str


def _loc_field() -> Any:
    return field(default=NO_LOC, repr=False, compare=False)


# ════════════════════════════════════════════════════════════════════════
# §2  Expressions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TrueLit:
    """The literal ``true``."""

    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class FalseLit:
    """The literal ``false``."""

    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class Nand:
    """``left NAND right`` – false only when both operands are true."""

    left: Expr
    right: Expr
    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class Ident:
    """A reference to a declared variable."""

    name: Name
    loc: SourceLoc = _loc_field()

    def __str__(self) -> str:  # noqa: D105
        return self.name


Expr = Union[TrueLit, FalseLit, Nand, Ident]

TRUE = TrueLit()
FALSE = FalseLit()


# ════════════════════════════════════════════════════════════════════════
# §3  Statements
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Decl:
    """Bind a new variable *name* to the value of *value*."""

    name: Name
    value: Expr
    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class Assign:
    """Overwrite the value of the existing variable *target*."""

    target: Name
    value: Expr
    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class If:
    """Run *body* once when *cond* holds.

    Declarations made inside *body* go out of scope when the ``If``
    exits; memory writes and frees made inside it persist.
    """

    cond: Expr
    body: Stmt
    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class While:
    """Run *body* repeatedly while *cond* holds (same scoping as ``If``)."""

    cond: Expr
    body: Stmt
    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class Seq:
    """Sequential composition; the only construct that threads scope forward."""

    first: Stmt
    second: Stmt
    loc: SourceLoc = _loc_field()


@dataclass(frozen=True, slots=True)
class Free:
    """Release the storage of *name*; later reads of it are faults."""

    name: Name
    loc: SourceLoc = _loc_field()


Stmt = Union[Decl, Assign, If, While, Seq, Free]
Node = Union[Expr, Stmt]

EXPR_TYPES: Tuple[type, ...] = (TrueLit, FalseLit, Nand, Ident)
STMT_TYPES: Tuple[type, ...] = (Decl, Assign, If, While, Seq, Free)


def is_expr(node: object) -> bool:
    return isinstance(node, EXPR_TYPES)


def is_stmt(node: object) -> bool:
    return isinstance(node, STMT_TYPES)


def seq(*stmts: Stmt) -> Stmt:
    """Fold *stmts* into right-nested ``Seq`` nodes.

    ``seq(a, b, c)`` is ``Seq(a, Seq(b, c))``; a single statement is
    returned unchanged.
    """
    if not stmts:
        raise ValueError("seq() needs at least one statement")
    result = stmts[-1]
    for stmt in reversed(stmts[:-1]):
        result = Seq(stmt, result)
    return result


# ════════════════════════════════════════════════════════════════════════
# §4  Traversal helpers
# ════════════════════════════════════════════════════════════════════════


def children(node: Node) -> Tuple[Node, ...]:
    """Return the direct sub-nodes of *node*, left to right."""
    if isinstance(node, Nand):
        return (node.left, node.right)
    if isinstance(node, (Decl, Assign)):
        return (node.value,)
    if isinstance(node, (If, While)):
        return (node.cond, node.body)
    if isinstance(node, Seq):
        return (node.first, node.second)
    if isinstance(node, (TrueLit, FalseLit, Ident, Free)):
        return ()
    raise TypeError(f"not a FormalLang node: {node!r}")


def walk(node: Node) -> Iterator[Node]:
    """Yield *node* and all of its descendants in pre-order.

    Uses an explicit stack so that long ``Seq`` chains do not hit the
    interpreter's recursion limit.
    """
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def identifiers(node: Node) -> List[Name]:
    """Every variable *use* in *node*, in source order.

    Includes ``Ident`` references, ``Assign`` targets and ``Free``
    names – everything that must resolve to a declared variable.
    """
    names: List[Name] = []
    for n in walk(node):
        if isinstance(n, Ident):
            names.append(n.name)
        elif isinstance(n, Assign):
            names.append(n.target)
        elif isinstance(n, Free):
            names.append(n.name)
    return names


def declarations(node: Node) -> List[Name]:
    """Names introduced by ``Decl`` nodes in *node*, in source order."""
    return [n.name for n in walk(node) if isinstance(n, Decl)]


def size(node: Node) -> int:
    """Number of nodes in the tree rooted at *node*."""
    return sum(1 for _ in walk(node))
