"""
Tests for the formula utility functions.

Tests cover single-constraint parsing, constraint files in strict and
lenient mode, variable name listing, error detection, canonical string
conversion, and constant folding.
"""

from io import StringIO
from pathlib import Path

import pytest

from clausal.parser.formula import (
    has_errors,
    parse_constraints,
    parse_formula,
    simplify,
    variable_names,
)
from clausal.parser.grammar import ParseError
from clausal.parser.lexer import LexerError
from clausal.structure.nodes import (
    FALSE,
    TRUE,
    And,
    ErrorLiteral,
    Implies,
    Not,
    Or,
)
from clausal.structure.variable_map import VariableMap
from clausal.utils.logger import LogLevel, TransformLogger


class TestParseFormula:
    """Test the parse_formula convenience function."""

    def test_shared_registry(self) -> None:
        vm = VariableMap()
        first = parse_formula("a -> b", vm)
        second = parse_formula("b -> a", vm)
        assert first.left == second.right
        assert len(vm) == 2

    def test_fresh_registry(self) -> None:
        assert str(parse_formula("x & !y")) == "(x & !y)"

    def test_error(self) -> None:
        with pytest.raises(ParseError):
            parse_formula("a ->")


class TestParseConstraints:
    """Test parsing of constraint files."""

    def test_conjoins_lines(self, feature_map: VariableMap) -> None:
        lines = ["Root", "A -> Root", "", "# comment", "B -> Root"]
        formula = parse_constraints(lines, feature_map)
        assert isinstance(formula, And)
        assert len(formula.children) == 3

    def test_single_line(self) -> None:
        vm = VariableMap()
        formula = parse_constraints(["a | b"], vm)
        assert formula == Or(vm.create_literal("a"), vm.create_literal("b"))

    def test_no_constraints(self) -> None:
        assert parse_constraints(["# nothing", "   "], VariableMap()) == TRUE

    def test_strict_mode_reports_line(self) -> None:
        with pytest.raises(ParseError, match="Line 2"):
            parse_constraints(["a", "a & & b"], VariableMap())

    def test_strict_mode_lexer_error(self) -> None:
        with pytest.raises(LexerError, match="Line 1"):
            parse_constraints(["a $ b"], VariableMap())

    def test_lenient_mode(self) -> None:
        vm = VariableMap()
        buf = StringIO()
        formula = parse_constraints(
            ["a", "a & & b", "b -> a"],
            vm,
            lenient=True,
            logger=TransformLogger(LogLevel.NORMAL, buf),
        )
        errors = [c for c in formula.children if isinstance(c, ErrorLiteral)]
        assert len(errors) == 1
        assert errors[0].error.startswith("line 2:")
        assert "[WARN] Line 2" in buf.getvalue()
        assert has_errors(formula)

    def test_fixture_file(self, formulas_dir: Path) -> None:
        vm = VariableMap()
        with (formulas_dir / "feature_model.txt").open(encoding="utf-8") as lines:
            formula = parse_constraints(lines, vm)
        assert vm.names == ["Root", "A", "B"]
        assert len(formula.children) == 4


class TestInspection:
    """Test variable listing and rendering."""

    def test_variable_names(self) -> None:
        formula = parse_formula("(a -> !b) & (c | a)")
        assert variable_names(formula) == frozenset({"a", "b", "c"})

    def test_constants_have_no_names(self) -> None:
        assert variable_names(parse_formula("true | false")) == frozenset()

    def test_has_errors(self) -> None:
        assert not has_errors(parse_formula("a & b"))

    def test_rendering_reparses(self) -> None:
        vm = VariableMap()
        formula = parse_formula("a <-> (b -> !c | d)", vm)
        assert parse_formula(str(formula), vm) == formula


class TestSimplify:
    """Test constant folding."""

    @pytest.fixture
    def vm(self) -> VariableMap:
        return VariableMap(["a", "b"])

    def test_true_dropped_from_and(self, vm: VariableMap) -> None:
        a, b = vm.create_literal("a"), vm.create_literal("b")
        assert simplify(And(a, TRUE, b)) == And(a, b)

    def test_false_absorbs_and(self, vm: VariableMap) -> None:
        assert simplify(And(vm.create_literal("a"), FALSE)) == FALSE

    def test_true_absorbs_or(self, vm: VariableMap) -> None:
        assert simplify(Or(vm.create_literal("a"), TRUE)) == TRUE

    def test_single_child_unwrapped(self, vm: VariableMap) -> None:
        a = vm.create_literal("a")
        assert simplify(Or(a, FALSE)) == a

    def test_all_neutral(self) -> None:
        assert simplify(And(TRUE, TRUE)) == TRUE
        assert simplify(Or(FALSE)) == FALSE

    def test_negation(self, vm: VariableMap) -> None:
        a = vm.create_literal("a")
        assert simplify(Not(TRUE)) == FALSE
        assert simplify(Not(Not(a))) == a

    def test_nested(self, vm: VariableMap) -> None:
        a, b = vm.create_literal("a"), vm.create_literal("b")
        formula = Implies(And(a, Not(FALSE)), Or(b, And(FALSE, a)))
        assert simplify(formula) == Implies(a, b)
