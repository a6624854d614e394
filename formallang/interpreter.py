"""
formallang/interpreter.py
=========================

Reference interpreter for FormalLang.

This module provides:

* ``eval_expr`` / ``eval_stmt`` – evaluate one node against a
  ``RuntimeState``; defensive faults are raised as ``InterpreterFault``.
* ``run``                       – the entry point: checks the program,
  executes it from the empty state, and reports the outcome as a
  ``RunResult`` (faults are captured, never raised).
* ``Interpreter``               – the evaluator object behind both, owning
  the allocator and the step counter.
* ``RuntimeConfig``             – tuning knobs (step budget, invariant
  checking, allocation strategy).

Scoping
-------
``If`` and ``While`` bodies run against the current state; on block exit
the body's *environment* is discarded while its memory, freed set and
location counter are kept.  Declarations made inside a block vanish,
writes to outer variables and frees survive.

Termination
-----------
``While`` is not guaranteed to terminate and ``run`` imposes no implicit
bound.  Set ``RuntimeConfig.max_steps`` to get a bounded run whose
outcome is ``BUDGET_EXHAUSTED`` instead of a hang.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from formallang import ast as A
from formallang.allocator import ALLOCATORS, Allocator, get_allocator
from formallang.checker import Checker
from formallang.errors import Diagnostic, FaultKind, InterpreterFault
from formallang.state import Location, RuntimeState

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Configuration                                                         #
# ===================================================================== #

@dataclass
class RuntimeConfig:
    """Tuning knobs for the interpreter."""
    max_steps: Optional[int] = None
    check_invariants: bool = False
    allocator: str = "bump"

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_steps is not None and self.max_steps < 0:
            warnings.append("max_steps must be non-negative")
        if self.allocator not in ALLOCATORS:
            warnings.append(
                f"allocator must be one of {sorted(ALLOCATORS)}, got {self.allocator!r}"
            )
        return warnings


# ===================================================================== #
#  Results                                                               #
# ===================================================================== #

class Outcome(enum.Enum):
    """How a ``run`` ended."""
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAULTED = "faulted"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class RunResult:
    """Result of ``run``.

    ``state`` is the final state for ``COMPLETED``, the state reached
    when the budget ran out for ``BUDGET_EXHAUSTED``, and ``None``
    otherwise – a fault leaves no partial result.
    """
    outcome: Outcome
    state: Optional[RuntimeState] = None
    fault: Optional[InterpreterFault] = None
    steps: int = 0
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.COMPLETED

    def value(self, name: A.Name) -> bool:
        """The final value of *name*; ``KeyError`` if it has no live storage."""
        if self.state is None:
            raise KeyError(name)
        return self.state.values()[name]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "outcome": self.outcome.value,
            "steps": self.steps,
        }
        if self.state is not None:
            result["state"] = self.state.to_dict()
            result["values"] = dict(sorted(self.state.values().items()))
        if self.fault is not None:
            result["fault"] = self.fault.to_dict()
        if self.diagnostics:
            result["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return result


class _StepBudgetExhausted(Exception):
    """Unwinds evaluation when ``max_steps`` is reached."""

    def __init__(self, state: RuntimeState) -> None:
        super().__init__("step budget exhausted")
        self.state = state


# ===================================================================== #
#  Interpreter                                                           #
# ===================================================================== #

class Interpreter:
    """Evaluates FormalLang programs.

    ``steps`` counts statement executions (every loop iteration counts
    as one more execution of the ``While``).
    """

    def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
        self.config = config or RuntimeConfig()
        for w in self.config.validate():
            logger.warning("RuntimeConfig: %s", w)
        self.max_steps = self.config.max_steps
        if self.max_steps is not None and self.max_steps < 0:
            self.max_steps = None
        allocator = self.config.allocator
        if allocator not in ALLOCATORS:
            allocator = "bump"
        self.allocator: Allocator = get_allocator(allocator)
        self.steps = 0

    # -- expressions ------------------------------------------------------

    def eval_expr(self, expr: A.Expr, state: RuntimeState) -> bool:
        if isinstance(expr, A.TrueLit):
            return True
        if isinstance(expr, A.FalseLit):
            return False
        if isinstance(expr, A.Nand):
            left = self.eval_expr(expr.left, state)
            right = self.eval_expr(expr.right, state)
            return not (left and right)
        if isinstance(expr, A.Ident):
            location = self._resolve(expr.name, state, expr.loc)
            value = state.read(location)
            if value is None:
                raise InterpreterFault(
                    FaultKind.INVALID_LOCATION, expr.name, location, expr.loc
                )
            return value
        raise TypeError(f"not an expression: {expr!r}")

    def _resolve(self, name: A.Name, state: RuntimeState, loc: A.SourceLoc) -> Location:
        location = state.lookup(name)
        if location is None:
            raise InterpreterFault(FaultKind.UNDECLARED_VARIABLE, name, loc=loc)
        if state.is_freed(name):
            raise InterpreterFault(FaultKind.ALREADY_FREED, name, location, loc)
        return location

    # -- statements -------------------------------------------------------

    def exec_stmt(self, stmt: A.Stmt, state: RuntimeState) -> RuntimeState:
        # Seq chains are walked along their right spine without recursion.
        while isinstance(stmt, A.Seq):
            self._tick(state)
            state = self.exec_stmt(stmt.first, state)
            stmt = stmt.second

        self._tick(state)

        if isinstance(stmt, A.Decl):
            value = self.eval_expr(stmt.value, state)
            if state.lookup(stmt.name) is not None:
                raise InterpreterFault(
                    FaultKind.REDECLARED_VARIABLE, stmt.name,
                    state.lookup(stmt.name), stmt.loc,
                )
            location, next_location = self.allocator.allocate(state)
            logger.debug("decl %s @%d = %s", stmt.name, location, value)
            state = state.declare(stmt.name, location, value, next_location)

        elif isinstance(stmt, A.Assign):
            value = self.eval_expr(stmt.value, state)
            location = self._resolve(stmt.target, state, stmt.loc)
            if state.read(location) is None:
                raise InterpreterFault(
                    FaultKind.INVALID_LOCATION, stmt.target, location, stmt.loc
                )
            state = state.store(location, value)

        elif isinstance(stmt, A.If):
            if self.eval_expr(stmt.cond, state):
                state = self._run_block(stmt.body, state)

        elif isinstance(stmt, A.While):
            iteration = 0
            while self.eval_expr(stmt.cond, state):
                iteration += 1
                logger.debug("while iteration %d", iteration)
                state = self._run_block(stmt.body, state)
                self._tick(state)

        elif isinstance(stmt, A.Free):
            location = self._resolve(stmt.name, state, stmt.loc)
            logger.debug("free %s @%d", stmt.name, location)
            state = state.release(stmt.name, location)

        else:
            raise TypeError(f"not a statement: {stmt!r}")

        if self.config.check_invariants:
            state.check_invariants()
        return state

    def _run_block(self, body: A.Stmt, state: RuntimeState) -> RuntimeState:
        """Run *body*, then restore the enclosing environment."""
        after = self.exec_stmt(body, state)
        return after.with_environment(state.environment)

    def _tick(self, state: RuntimeState) -> None:
        self.steps += 1
        limit = self.max_steps
        if limit is not None and self.steps > limit:
            raise _StepBudgetExhausted(state)

    # -- entry point ------------------------------------------------------

    def run(self, program: A.Stmt) -> RunResult:
        """Check *program*, then execute it from the initial state."""
        checker = Checker()
        if checker.check_stmt(program) is None:
            logger.info("program rejected by the checker; not executing")
            return RunResult(Outcome.REJECTED, diagnostics=tuple(checker.diagnostics))

        self.steps = 0
        try:
            final = self.exec_stmt(program, RuntimeState.initial())
        except InterpreterFault as fault:
            logger.info("fault after %d steps: %s", self.steps, fault)
            return RunResult(Outcome.FAULTED, fault=fault, steps=self.steps)
        except _StepBudgetExhausted as stop:
            logger.info("step budget of %d exhausted", self.max_steps)
            return RunResult(
                Outcome.BUDGET_EXHAUSTED, state=stop.state, steps=self.max_steps or 0
            )
        return RunResult(Outcome.COMPLETED, state=final, steps=self.steps)


# ===================================================================== #
#  Functional entry points                                               #
# ===================================================================== #

def eval_expr(expr: A.Expr, state: Optional[RuntimeState] = None) -> bool:
    """Evaluate *expr*; raises ``InterpreterFault`` on a bad reference."""
    if state is None:
        state = RuntimeState.initial()
    return Interpreter().eval_expr(expr, state)


def eval_stmt(stmt: A.Stmt, state: Optional[RuntimeState] = None) -> RuntimeState:
    """Execute *stmt*; raises ``InterpreterFault`` on a defensive failure.

    Unlike ``run`` this does not check the program first, and it never
    stops on its own if *stmt* loops forever.
    """
    if state is None:
        state = RuntimeState.initial()
    return Interpreter().exec_stmt(stmt, state)


def run(program: A.Stmt, config: Optional[RuntimeConfig] = None) -> RunResult:
    """Interpreter entry point: check, then run from ``(∅, ∅, ∅, 0)``."""
    return Interpreter(config).run(program)
