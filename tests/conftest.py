"""
Shared pytest fixtures for the CLAUSAL test suite.

Provides reusable fixtures for variable registries, the literals of
a small feature model, and paths to constraint file fixtures.
"""

from itertools import product
from pathlib import Path
from typing import Dict

import pytest

from clausal.core.evaluation import evaluate
from clausal.structure.nodes import VariableLiteral
from clausal.structure.variable_map import VariableMap


@pytest.fixture
def variable_map() -> VariableMap:
    """A registry with boolean variables a, b, c, d (indices 1-4)."""
    return VariableMap(["a", "b", "c", "d"])


@pytest.fixture
def literals(variable_map: VariableMap) -> Dict[str, VariableLiteral]:
    """Positive literals for a, b, c, d keyed by name."""
    return {name: variable_map.create_literal(name) for name in variable_map.names}


@pytest.fixture
def feature_map() -> VariableMap:
    """A registry for the Root/A/B feature model."""
    return VariableMap(["Root", "A", "B"])


@pytest.fixture
def tmp_formula_file(tmp_path: Path) -> Path:
    """Path for a temporary constraint file."""
    return tmp_path / "model.txt"


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def formulas_dir(fixtures_dir: Path) -> Path:
    """Path to the constraint file fixtures directory."""
    return fixtures_dir / "formulas"


@pytest.fixture
def equivalent():
    """Return a checker comparing two formulas under every boolean assignment."""
    def check(first, second, variable_map: VariableMap) -> bool:
        indices = [s.index for s in variable_map.signatures if s.type is bool]
        for values in product((False, True), repeat=len(indices)):
            assignment = dict(zip(indices, values))
            if evaluate(first, assignment) != evaluate(second, assignment):
                return False
        return True

    return check
