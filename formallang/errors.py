# formallang/errors.py
"""
FormalLang Error Types and Diagnostics

Error infrastructure shared by the reader, the checker and the
interpreter.

Error Hierarchy:
────────────────
    FormalLangError (base)
    ├── ParseError          - Surface syntax could not be read
    ├── InterpreterFault    - Defensive runtime fault (should never fire
    │                         for a checker-accepted program, except for
    │                         the conditional-free gap)
    └── InvariantViolation  - RuntimeState broke I1 / I2 (interpreter bug)

Checker verdicts are *not* exceptions: the checker returns ``None`` for a
rejected program, and the diagnostic-collecting ``Checker`` records a
``Diagnostic`` value describing why.

Error Codes:
────────────
Each error has a unique code ``FL-XXXX`` in ranges:
  - 1000-1999: Syntax errors
  - 3000-3999: Scope errors (checker)
  - 5000-5999: Runtime faults (interpreter)
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto, unique
from typing import Any, Dict, Optional

from formallang.ast import NO_LOC, Name, SourceLoc


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for FormalLang errors."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"

    def is_error(self) -> bool:
        return self in (ErrorSeverity.FATAL, ErrorSeverity.ERROR)


@unique
class ErrorPhase(Enum):
    """Phase in which the error occurred."""

    SYNTAX = "syntax"          # Reading surface syntax
    SCOPE = "scope"            # Static checking
    RUNTIME = "runtime"        # Execution
    INTERNAL = "internal"      # Interpreter internals


@unique
class ErrorCategory(Enum):
    """Fine-grained error categories for filtering and statistics."""

    # Syntax
    MALFORMED_SEXP = auto()
    UNKNOWN_FORM = auto()
    WRONG_ARITY = auto()
    INVALID_NAME = auto()

    # Scope
    UNDEFINED_SYMBOL = auto()
    REDEFINED_SYMBOL = auto()

    # Runtime
    MEMORY_ERROR = auto()
    USE_AFTER_FREE = auto()

    # Internal
    INVARIANT_BROKEN = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``FL-NNNN``.

    Two codes are equal when prefix and number match; a code also
    compares equal to its string form, so ``code == "FL-3000"`` works.
    """

    __slots__ = ("prefix", "number", "category", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class FormalLangErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # SYNTAX ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    MALFORMED_SEXP = ErrorCode(
        "FL", 1000, ErrorCategory.MALFORMED_SEXP, ErrorPhase.SYNTAX
    )
    UNKNOWN_FORM = ErrorCode(
        "FL", 1001, ErrorCategory.UNKNOWN_FORM, ErrorPhase.SYNTAX
    )
    WRONG_ARITY = ErrorCode(
        "FL", 1002, ErrorCategory.WRONG_ARITY, ErrorPhase.SYNTAX
    )
    INVALID_NAME = ErrorCode(
        "FL", 1003, ErrorCategory.INVALID_NAME, ErrorPhase.SYNTAX
    )
    EMPTY_PROGRAM = ErrorCode(
        "FL", 1004, ErrorCategory.MALFORMED_SEXP, ErrorPhase.SYNTAX
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # SCOPE ERRORS (3000-3999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNDECLARED_VARIABLE = ErrorCode(
        "FL", 3000, ErrorCategory.UNDEFINED_SYMBOL, ErrorPhase.SCOPE
    )
    REDECLARED_VARIABLE = ErrorCode(
        "FL", 3001, ErrorCategory.REDEFINED_SYMBOL, ErrorPhase.SCOPE
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RUNTIME FAULTS (5000-5999)
    # ═══════════════════════════════════════════════════════════════════════════

    RUNTIME_UNDECLARED_VARIABLE = ErrorCode(
        "FL", 5000, ErrorCategory.UNDEFINED_SYMBOL, ErrorPhase.RUNTIME
    )
    INVALID_LOCATION = ErrorCode(
        "FL", 5001, ErrorCategory.MEMORY_ERROR, ErrorPhase.RUNTIME
    )
    RUNTIME_REDECLARED_VARIABLE = ErrorCode(
        "FL", 5002, ErrorCategory.REDEFINED_SYMBOL, ErrorPhase.RUNTIME
    )
    ALREADY_FREED = ErrorCode(
        "FL", 5003, ErrorCategory.USE_AFTER_FREE, ErrorPhase.RUNTIME
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # INTERNAL ERRORS (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    INVARIANT_VIOLATION = ErrorCode(
        "FL", 9000, ErrorCategory.INVARIANT_BROKEN, ErrorPhase.INTERNAL,
        ErrorSeverity.FATAL
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CHECKER DIAGNOSTICS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    Why the checker rejected a node.

    Attributes:
        code: ``UNDECLARED_VARIABLE`` or ``REDECLARED_VARIABLE``
        name: The variable the rule tripped on
        node: The AST node being examined when checking failed
        loc: Source location of that node (``NO_LOC`` for built trees)
    """

    code: ErrorCode
    name: Name
    node: Any
    loc: SourceLoc = NO_LOC

    @property
    def message(self) -> str:
        if self.code == FormalLangErrorCodes.REDECLARED_VARIABLE:
            return f"variable '{self.name}' is already declared in this scope"
        return f"variable '{self.name}' is not declared in this scope"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.code,
            "category": self.code.category.name,
            "name": self.name,
            "message": self.message,
            "location": str(self.loc),
        }

    def to_gcc_format(self) -> str:
        """Format as GCC-style diagnostic string."""
        return f"{self.loc}: error: [{self.code}] {self.message}"


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class FormalLangError(Exception):
    """Base exception for all FormalLang errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = FormalLangErrorCodes.INVARIANT_VIOLATION,
        loc: Optional[SourceLoc] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.loc = loc or NO_LOC

    @property
    def severity(self) -> ErrorSeverity:
        return self.code.default_severity

    def __str__(self) -> str:
        if self.loc is not NO_LOC:
            return f"{self.loc}: [{self.code}] {self.message}"
        return f"[{self.code}] {self.message}"


class ParseError(FormalLangError):
    """Raised when source text cannot be mapped to a valid AST."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = FormalLangErrorCodes.MALFORMED_SEXP,
        loc: Optional[SourceLoc] = None,
    ) -> None:
        super().__init__(message, code=code, loc=loc)


@unique
class FaultKind(Enum):
    """Kinds of defensive runtime fault."""

    UNDECLARED_VARIABLE = "undeclared-variable"
    INVALID_LOCATION = "invalid-location"
    REDECLARED_VARIABLE = "redeclared-variable"
    ALREADY_FREED = "already-freed"

    @property
    def error_code(self) -> ErrorCode:
        return _FAULT_CODES[self]


_FAULT_CODES: Dict[FaultKind, ErrorCode] = {
    FaultKind.UNDECLARED_VARIABLE: FormalLangErrorCodes.RUNTIME_UNDECLARED_VARIABLE,
    FaultKind.INVALID_LOCATION: FormalLangErrorCodes.INVALID_LOCATION,
    FaultKind.REDECLARED_VARIABLE: FormalLangErrorCodes.RUNTIME_REDECLARED_VARIABLE,
    FaultKind.ALREADY_FREED: FormalLangErrorCodes.ALREADY_FREED,
}

_FAULT_MESSAGES: Dict[FaultKind, str] = {
    FaultKind.UNDECLARED_VARIABLE: "variable '{name}' is not bound in the environment",
    FaultKind.INVALID_LOCATION: "location {location} of '{name}' is not in memory",
    FaultKind.REDECLARED_VARIABLE: "variable '{name}' is already bound",
    FaultKind.ALREADY_FREED: "variable '{name}' has already been freed",
}


class InterpreterFault(FormalLangError):
    """
    A defensive runtime fault.

    Raised inside the interpreter and aborts evaluation; ``run`` catches
    it and reports it through ``RunResult.fault``.
    """

    def __init__(
        self,
        kind: FaultKind,
        name: Name,
        location: Optional[int] = None,
        loc: Optional[SourceLoc] = None,
    ) -> None:
        message = _FAULT_MESSAGES[kind].format(name=name, location=location)
        super().__init__(message, code=kind.error_code, loc=loc)
        self.kind = kind
        self.name = name
        self.location = location

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "code": self.code.code,
            "name": self.name,
            "location": self.location,
            "message": self.message,
            "source": str(self.loc),
        }


class InvariantViolation(FormalLangError):
    """A runtime state broke location validity (I1) or freshness (I2)."""

    def __init__(self, message: str, loc: Optional[SourceLoc] = None) -> None:
        super().__init__(
            message, code=FormalLangErrorCodes.INVARIANT_VIOLATION, loc=loc
        )
