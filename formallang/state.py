"""
formallang/state.py
===================

The runtime state threaded through statement execution::

    RuntimeState = (environment, freed, memory, next_location)

* ``environment`` – ``Name -> Location``; its keys are exactly the
  variables currently in scope.
* ``freed``       – names that have been explicitly freed.
* ``memory``      – ``Location -> bool``; the values currently stored.
* ``next_location`` – the bump allocator's counter.

States are values: every transition returns a new ``RuntimeState`` and
never mutates the receiver, so ``If`` / ``While`` can drop a body's
environment simply by not propagating it.

Invariants
----------
I1 (location validity)
    Every location bound in ``environment`` to a name that has not been
    freed is a key of ``memory``.
I2 (freshness)
    ``next_location`` is strictly greater than every key of ``memory``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, NewType, Optional

from formallang.ast import Name
from formallang.errors import InvariantViolation

Location = NewType("Location", int)

_EMPTY: Mapping[Any, Any] = MappingProxyType({})


def _frozen(mapping: Dict[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(mapping)


@dataclass(frozen=True, slots=True)
class RuntimeState:
    """Immutable interpreter state."""

    environment: Mapping[Name, Location] = field(default_factory=lambda: _EMPTY)
    freed: FrozenSet[Name] = frozenset()
    memory: Mapping[Location, bool] = field(default_factory=lambda: _EMPTY)
    next_location: Location = Location(0)

    @classmethod
    def initial(cls) -> RuntimeState:
        """The state every program starts from: ``(∅, ∅, ∅, 0)``."""
        return cls()

    # -- queries ----------------------------------------------------------

    @property
    def variables(self) -> FrozenSet[Name]:
        """Names currently in scope (the keys of the environment)."""
        return frozenset(self.environment)

    def lookup(self, name: Name) -> Optional[Location]:
        return self.environment.get(name)

    def is_freed(self, name: Name) -> bool:
        return name in self.freed

    def read(self, location: Location) -> Optional[bool]:
        return self.memory.get(location)

    def values(self) -> Dict[Name, bool]:
        """Current value of every in-scope variable that still has storage."""
        return {
            name: self.memory[loc]
            for name, loc in self.environment.items()
            if loc in self.memory
        }

    # -- transitions ------------------------------------------------------

    def declare(
        self, name: Name, location: Location, value: bool, next_location: Location
    ) -> RuntimeState:
        """Bind *name* to a fresh *location* holding *value*.

        A name freed inside a block that has since exited may be declared
        again; the new binding is live, so the name leaves ``freed``.
        """
        env = dict(self.environment)
        env[name] = location
        mem = dict(self.memory)
        mem[location] = value
        return RuntimeState(
            environment=_frozen(env),
            freed=self.freed - {name},
            memory=_frozen(mem),
            next_location=next_location,
        )

    def store(self, location: Location, value: bool) -> RuntimeState:
        """Overwrite the cell at *location*."""
        mem = dict(self.memory)
        mem[location] = value
        return RuntimeState(
            environment=self.environment,
            freed=self.freed,
            memory=_frozen(mem),
            next_location=self.next_location,
        )

    def release(self, name: Name, location: Location) -> RuntimeState:
        """Mark *name* freed and drop *location* from memory.

        The binding in the environment is kept: the name stays in scope,
        only its storage goes away.
        """
        mem = dict(self.memory)
        mem.pop(location, None)
        return RuntimeState(
            environment=self.environment,
            freed=self.freed | {name},
            memory=_frozen(mem),
            next_location=self.next_location,
        )

    def with_environment(self, environment: Mapping[Name, Location]) -> RuntimeState:
        """Keep memory, freed set and counter; swap in *environment*.

        This is the block-exit rule for ``If`` and ``While``: the body's
        declarations vanish, its side effects stay.
        """
        return RuntimeState(
            environment=environment,
            freed=self.freed,
            memory=self.memory,
            next_location=self.next_location,
        )

    # -- invariants -------------------------------------------------------

    def invariant_errors(self) -> List[str]:
        """Return a list of I1 / I2 violations (empty if the state is sound)."""
        errors: List[str] = []
        for name, loc in self.environment.items():
            if name in self.freed:
                continue
            if loc not in self.memory:
                errors.append(
                    f"I1: '{name}' is bound to location {loc} which is not in memory"
                )
        for loc in self.memory:
            if loc >= self.next_location:
                errors.append(
                    f"I2: location {loc} is not below next_location {self.next_location}"
                )
        return errors

    def check_invariants(self) -> None:
        errors = self.invariant_errors()
        if errors:
            raise InvariantViolation("; ".join(errors))

    # -- presentation -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly snapshot (location keys become strings)."""
        return {
            "environment": dict(sorted(self.environment.items())),
            "freed": sorted(self.freed),
            "memory": {str(loc): val for loc, val in sorted(self.memory.items())},
            "next_location": self.next_location,
        }

    def pretty(self) -> str:
        lines = []
        for name, loc in sorted(self.environment.items()):
            if name in self.freed:
                lines.append(f"{name} @{loc} = <freed>")
            else:
                value = self.memory.get(loc)
                shown = "<invalid>" if value is None else str(value).lower()
                lines.append(f"{name} @{loc} = {shown}")
        lines.append(f"next location: {self.next_location}")
        return "\n".join(lines)
