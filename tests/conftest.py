# tests/conftest.py
"""
Shared fixtures for the FormalLang test suite: sample program sources,
and a seeded random program generator for the property tests.
"""

import os
import random
import sys

import pytest

# Ensure formallang package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from formallang import ast as A  # noqa: E402


# ─────────────────────────────────────────────────────────────────
# Sample programs (surface syntax)
# ─────────────────────────────────────────────────────────────────

# y is declared inside the if-body and read after it: rejected.
SCOPE_LEAK_SRC = """
(decl x true)
(if true (decl y true))
(decl z y)
"""

# x is mutated inside the if-body: accepted, and the write is visible.
SCOPE_MUTATE_SRC = """
(decl x true)
(if true (assign x false))
(decl result x)
"""

# Two-bit counter stepped by a while loop until both bits are set.
COUNTER_SRC = """
; lo/hi count 00 -> 01 -> 10 -> 11
(decl lo false)
(decl hi false)
(decl running true)
(while running
  (seq
    (decl carry lo)
    (assign lo (nand lo lo))
    (if carry (assign hi (nand hi hi)))
    (assign running (nand lo hi))))
"""

# x is freed only on one path; the checker still accepts the later read.
CONDITIONAL_FREE_SRC = """
(decl c true)
(decl x true)
(if c (free x))
(decl y x)
"""

INFINITE_LOOP_SRC = """
(decl x true)
(while x (assign x true))
"""


# ─────────────────────────────────────────────────────────────────
# Random program generation
# ─────────────────────────────────────────────────────────────────

NAME_POOL = ("a", "b", "c", "d")


class ProgramGenerator:
    """Builds random programs biased towards (but not guaranteed) well-scoped.

    The generator keeps a rough idea of which names are in scope so that a
    useful share of the output is accepted by the checker, while the
    occasional out-of-scope name or redeclaration keeps rejected programs
    in the mix.
    """

    def __init__(self, seed, max_depth=3, max_seq=4):
        self.rng = random.Random(seed)
        self.max_depth = max_depth
        self.max_seq = max_seq

    def _name(self, scope, in_scope_bias=0.9):
        if scope and self.rng.random() < in_scope_bias:
            return self.rng.choice(sorted(scope))
        return self.rng.choice(NAME_POOL)

    def expr(self, scope, depth=0):
        roll = self.rng.random()
        if depth >= 2 or roll < 0.3:
            pick = self.rng.random()
            if pick < 0.25:
                return A.TrueLit()
            if pick < 0.4:
                return A.FalseLit()
            return A.Ident(self._name(scope))
        return A.Nand(self.expr(scope, depth + 1), self.expr(scope, depth + 1))

    def stmt(self, scope, depth=0):
        kinds = ["decl", "assign", "free"]
        if depth < self.max_depth:
            kinds += ["if", "while", "seq", "seq"]
        kind = self.rng.choice(kinds)

        if kind == "decl":
            fresh = [n for n in NAME_POOL if n not in scope]
            if fresh and self.rng.random() < 0.9:
                name = self.rng.choice(fresh)
            else:
                name = self.rng.choice(NAME_POOL)
            stmt = A.Decl(name, self.expr(scope))
            scope.add(name)
            return stmt
        if kind == "assign":
            return A.Assign(self._name(scope), self.expr(scope))
        if kind == "free":
            return A.Free(self._name(scope, in_scope_bias=0.95))
        if kind in ("if", "while"):
            cls = A.If if kind == "if" else A.While
            return cls(self.expr(scope), self.stmt(set(scope), depth + 1))
        count = self.rng.randint(2, self.max_seq)
        return A.seq(*[self.stmt(scope, depth + 1) for _ in range(count)])

    def program(self):
        return self.stmt(set())


def random_program(seed):
    return ProgramGenerator(seed).program()


@pytest.fixture
def gen():
    return ProgramGenerator(seed=1234)
