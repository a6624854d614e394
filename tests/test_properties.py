# tests/test_properties.py
"""
Randomised checks over generated programs (seeded, so failures reproduce):
the checker agrees with the structural predicates, and accepted programs
never hit a scoping fault at run time.
"""

import pytest

from formallang.checker import check, has_no_redeclarations, is_closed
from formallang.errors import FaultKind
from formallang.interpreter import Outcome, RuntimeConfig, run
from formallang.parser import parse_program, to_sexp
from tests.conftest import random_program

SEEDS = range(200)
BUDGET = 300


@pytest.mark.parametrize("seed", SEEDS)
def test_accepted_programs_are_closed_and_unique(seed):
    prog = random_program(seed)
    if check(prog) is not None:
        assert is_closed(prog)
        assert has_no_redeclarations(prog)


@pytest.mark.parametrize("seed", SEEDS)
def test_checker_is_deterministic(seed):
    prog = random_program(seed)
    assert check(prog) == check(prog)


@pytest.mark.parametrize("seed", SEEDS)
@pytest.mark.parametrize("allocator", ["bump", "max-scan"])
def test_accepted_programs_only_fault_on_frees(seed, allocator):
    prog = random_program(seed)
    scope = check(prog)
    config = RuntimeConfig(max_steps=BUDGET, check_invariants=True, allocator=allocator)
    result = run(prog, config)

    if scope is None:
        assert result.outcome is Outcome.REJECTED
        assert result.diagnostics
        return

    assert result.outcome is not Outcome.REJECTED
    if result.outcome is Outcome.FAULTED:
        assert result.fault.kind is FaultKind.ALREADY_FREED
    elif result.outcome is Outcome.COMPLETED:
        # the names left in scope at run time are the ones the checker predicted
        assert result.state.variables == scope
        assert result.state.invariant_errors() == []


@pytest.mark.parametrize("seed", SEEDS)
def test_printed_programs_read_back(seed):
    prog = random_program(seed)
    assert parse_program(to_sexp(prog)) == prog


def test_generator_produces_a_mix():
    verdicts = [check(random_program(seed)) is not None for seed in SEEDS]
    assert any(verdicts)
    assert not all(verdicts)
