"""
End-to-end integration tests for CLAUSAL.

Tests the complete pipeline from constraint text through normal form
conversion, clause-list export and satisfiability checking, the CLI
invoked as a module, and deep trees that stress the iterative walks.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import List

import pytest

from clausal.analysis.metrics import hamming_distance
from clausal.analysis.solver import PySatSolver, SatResult
from clausal.core.clauses import from_clause_list, to_clause_list, to_dimacs
from clausal.core.evaluation import Assignment, evaluate
from clausal.core.normal_form import (
    NormalForm,
    convert,
    is_cnf,
    is_dnf,
    is_nnf,
    to_cnf,
    to_dnf,
    to_nnf,
)
from clausal.core.traversal import depth
from clausal.parser.formula import parse_constraints, parse_formula
from clausal.structure.nodes import And, Not, Or
from clausal.structure.variable_map import VariableMap

# ---------------------------------------------------------------------------
# Shared paths
# ---------------------------------------------------------------------------

ROOT = Path(__file__).parent.parent.parent
FORMULAS = Path(__file__).parent.parent / "fixtures" / "formulas"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _run_cli(*args: str, timeout: int = 60) -> subprocess.CompletedProcess[str]:
    """Invoke the CLAUSAL CLI via ``python -m clausal`` and return the result."""
    cmd = [sys.executable, "-m", "clausal", *args]
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=str(ROOT),
    )


def _load(name: str, variable_map: VariableMap):
    with (FORMULAS / name).open(encoding="utf-8") as lines:
        return parse_constraints(lines, variable_map)


def _all_models(solver: PySatSolver) -> List[List[int]]:
    """Enumerate models by adding a blocking clause after each one."""
    models: List[List[int]] = []
    while solver.has_solution() is SatResult.SATISFIABLE:
        model = solver.solution()
        models.append(model)
        solver.add_clauses([[-literal for literal in model]])
    return models


# ---------------------------------------------------------------------------
# Tests: Feature Model Pipeline
# ---------------------------------------------------------------------------


class TestFeatureModelPipeline:
    """Root with two optional children, at least one of them selected."""

    def test_strict_cnf_clauses(self) -> None:
        vm = VariableMap()
        formula = _load("feature_model.txt", vm)
        cnf = to_cnf(formula, strict=True)
        assert is_cnf(cnf, strict=True)

        clauses = {frozenset(clause) for clause in to_clause_list(cnf, vm)}
        root, a, b = (vm.get_index(name) for name in ("Root", "A", "B"))
        assert clauses == {
            frozenset({root}),
            frozenset({-a, root}),
            frozenset({-b, root}),
            frozenset({-root, a, b}),
        }

    def test_models(self) -> None:
        vm = VariableMap()
        formula = _load("feature_model.txt", vm)
        solver = PySatSolver()
        solver.add_formula(formula, vm)

        models = _all_models(solver)
        assert len(models) == 3
        for model in models:
            assert evaluate(formula, Assignment.from_literals(model, vm)) is True
        assert solver.has_solution() is SatResult.UNSATISFIABLE

    def test_hamming_between_models(self) -> None:
        vm = VariableMap()
        solver = PySatSolver()
        solver.add_formula(_load("feature_model.txt", vm), vm)
        first, second, third = _all_models(solver)
        for x, y in ((first, second), (first, third), (second, third)):
            distance = hamming_distance(x, y)
            assert 0 < distance <= 2 / 3

    def test_clause_round_trip(self, equivalent) -> None:
        vm = VariableMap()
        formula = _load("feature_model.txt", vm)
        clause_list = to_clause_list(to_cnf(formula), vm)
        rebuilt = from_clause_list(clause_list, vm)
        assert is_cnf(rebuilt, strict=True)
        assert equivalent(formula, rebuilt, vm)

    def test_dimacs_header(self) -> None:
        vm = VariableMap()
        clause_list = to_clause_list(to_cnf(_load("feature_model.txt", vm)), vm)
        text = to_dimacs(clause_list, comments=["feature model"])
        assert text.splitlines()[:2] == ["c feature model", "p cnf 3 4"]


class TestUnsatisfiable:
    """Contradictory constraints."""

    def test_solver_verdict(self) -> None:
        vm = VariableMap()
        solver = PySatSolver()
        solver.add_formula(_load("unsat.txt", vm), vm)
        assert solver.has_solution() is SatResult.UNSATISFIABLE
        assert solver.solution() is None


class TestConversionsAgree:
    """All three forms of a formula are equivalent to it and to each other."""

    @pytest.mark.parametrize(
        "text",
        [
            "(a | b) & !(a & b)",
            "a <-> (b | c)",
            "!(a -> b) | (c & !d)",
            "(a & b) | (c & d) | (a & !c)",
            "!((a | b) -> (c <-> d))",
        ],
    )
    def test_equivalent(self, text: str, equivalent) -> None:
        vm = VariableMap(["a", "b", "c", "d"])
        formula = parse_formula(text, vm)
        nnf = to_nnf(formula)
        cnf = to_cnf(formula)
        dnf = to_dnf(formula)
        strict_cnf = to_cnf(formula, strict=True)
        strict_dnf = to_dnf(formula, strict=True)

        assert is_nnf(nnf)
        assert is_cnf(cnf) and is_dnf(dnf)
        assert is_cnf(strict_cnf, strict=True) and is_dnf(strict_dnf, strict=True)
        for converted in (nnf, cnf, dnf, strict_cnf, strict_dnf):
            assert equivalent(formula, converted, vm)

    def test_input_untouched(self) -> None:
        vm = VariableMap(["a", "b", "c"])
        formula = parse_formula("!(a & (b | c))", vm)
        before = str(formula)
        convert(formula, NormalForm.DNF)
        convert(formula, NormalForm.CNF, strict=True)
        assert str(formula) == before


# ---------------------------------------------------------------------------
# Tests: Deep Trees
# ---------------------------------------------------------------------------


class TestDeepTrees:
    """Trees thousands of levels deep convert without recursion."""

    LEVELS = 2500

    def _alternating(self, vm: VariableMap):
        a = vm.create_literal("a")
        b = vm.create_literal("b")
        node = a
        for _ in range(self.LEVELS):
            node = Or(b, And(a, node))
        return node

    def test_negation_chain(self) -> None:
        vm = VariableMap(["a"])
        node = vm.create_literal("a")
        for _ in range(2 * self.LEVELS + 1):
            node = Not(node)
        assert depth(node) == 2 * self.LEVELS + 2

        result = to_nnf(node)
        assert result == vm.create_literal("a", positive=False)
        assert evaluate(node, {"a": True}) is False

    def test_nested_conjunction(self) -> None:
        vm = VariableMap(["a", "b", "c"])
        literals = [vm.create_literal(name) for name in ("a", "b", "c")]
        node = literals[0]
        for i in range(2 * self.LEVELS):
            node = And(literals[i % 3], node)

        cnf = to_cnf(node)
        assert isinstance(cnf, And)
        assert len(cnf.children) == 2 * self.LEVELS + 1

    def test_alternating_cnf(self, equivalent) -> None:
        vm = VariableMap(["a", "b"])
        formula = self._alternating(vm)
        assert depth(formula) > 2 * self.LEVELS

        cnf = to_cnf(formula)
        assert is_cnf(cnf)
        assert equivalent(formula, cnf, vm)

    def test_alternating_dnf(self, equivalent) -> None:
        vm = VariableMap(["a", "b"])
        formula = self._alternating(vm)

        dnf = to_dnf(formula)
        assert is_dnf(dnf)
        assert equivalent(formula, dnf, vm)

    def test_string_and_equality(self) -> None:
        vm = VariableMap(["a", "b"])
        first = self._alternating(vm)
        second = self._alternating(vm)
        assert first == second
        assert hash(first) == hash(second)
        assert str(first).startswith("(b | (a & (b | ")


# ---------------------------------------------------------------------------
# Tests: CLI Pipeline
# ---------------------------------------------------------------------------


class TestCliPipeline:
    """The CLI run as a module from the repository root."""

    def test_dimacs_then_check(self, tmp_path: Path) -> None:
        model = tmp_path / "model.txt"
        model.write_text(
            "# mutually exclusive children\n"
            "Root\n"
            "A -> Root\n"
            "B -> Root\n"
            "Root -> A | B\n"
            "!(A & B)\n",
            encoding="utf-8",
        )
        result = _run_cli("-f", str(model), "--dimacs", "--check-sat")
        assert result.returncode == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "p cnf 3 5"
        assert lines[-1] == "s SATISFIABLE"

    def test_empty_file_is_true(self, tmp_path: Path) -> None:
        model = tmp_path / "empty.txt"
        model.write_text("# nothing\n\n", encoding="utf-8")
        result = _run_cli("-f", str(model), "--check-sat")
        assert result.returncode == 0
        assert result.stdout.splitlines() == ["true", "s SATISFIABLE"]
