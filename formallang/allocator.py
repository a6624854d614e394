"""
formallang/allocator.py
=======================

Fresh-location allocation for ``Decl``.

Two strategies, both guaranteeing freshness (I2):

* ``BumpAllocator`` – hands out ``state.next_location`` and advances it
  by one.  O(1); location numbers are never reclaimed, not even after
  ``Free``.
* ``MaxScanAllocator`` – hands out one past the largest location still
  referenced (bound or stored), without trusting the counter.  O(n) per
  call.

Allocation cannot fail: there is no memory bound.
"""

from __future__ import annotations

from typing import Dict, Iterable, Protocol, Tuple, Type

from formallang.state import Location, RuntimeState


class Allocator(Protocol):
    """Returns a fresh location and the counter value that follows it."""

    name: str

    def allocate(self, state: RuntimeState) -> Tuple[Location, Location]: ...


def fresh_location(locations: Iterable[Location]) -> Location:
    """One past the maximum of *locations* (``0`` when empty)."""
    return Location(max(locations, default=-1) + 1)


class BumpAllocator:
    """Bump-pointer allocation driven by ``RuntimeState.next_location``."""

    name = "bump"

    def allocate(self, state: RuntimeState) -> Tuple[Location, Location]:
        location = state.next_location
        return location, Location(location + 1)


class MaxScanAllocator:
    """Allocation by scanning for the largest location still referenced.

    Ignores the counter on input.  A location whose cell was freed and
    whose binding went out of scope may be handed out again; the
    returned counter is always one past the result, so I2 holds.
    """

    name = "max-scan"

    def allocate(self, state: RuntimeState) -> Tuple[Location, Location]:
        used = list(state.memory)
        used.extend(state.environment.values())
        location = fresh_location(used)
        return location, Location(location + 1)


ALLOCATORS: Dict[str, Type[Allocator]] = {
    BumpAllocator.name: BumpAllocator,
    MaxScanAllocator.name: MaxScanAllocator,
}


def get_allocator(name: str) -> Allocator:
    """Instantiate the allocator registered under *name*."""
    try:
        return ALLOCATORS[name]()
    except KeyError:
        raise ValueError(
            f"unknown allocator {name!r}; choose from {sorted(ALLOCATORS)}"
        ) from None
