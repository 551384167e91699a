"""
Tests for the CLAUSAL command-line interface.

Tests cover argument parsing, output modes, clause export, satisfiability
checks, exit codes, and error handling.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.parent
FORMULAS = Path(__file__).parent.parent / "fixtures" / "formulas"

FEATURE_MODEL = str(FORMULAS / "feature_model.txt")
UNSAT = str(FORMULAS / "unsat.txt")
XOR = str(FORMULAS / "xor.txt")
MALFORMED = str(FORMULAS / "malformed.txt")


def _run_cli(*args: str, timeout: int = 30) -> subprocess.CompletedProcess[str]:
    """Run the CLAUSAL CLI as a subprocess."""
    cmd = [sys.executable, "-m", "clausal", *args]
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=str(ROOT),
    )


# ---------------------------------------------------------------------------
# Tests: Required Arguments
# ---------------------------------------------------------------------------


class TestRequiredArguments:
    """Test that required arguments are enforced."""

    def test_no_arguments(self) -> None:
        result = _run_cli()
        assert result.returncode == 2

    def test_invalid_normal_form(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "-n", "anf")
        assert result.returncode == 2

    def test_version(self) -> None:
        result = _run_cli("--version")
        assert result.returncode == 0
        assert "clausal 0.1.0" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Conversion Output
# ---------------------------------------------------------------------------


class TestConversionOutput:
    """Test the printed normal forms."""

    def test_default_cnf(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL)
        assert result.returncode == 0
        assert result.stdout.strip() == "(Root & (!A | Root) & (!B | Root) & (!Root | A | B))"

    def test_strict_cnf(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--strict")
        assert result.stdout.strip() == "((Root) & (!A | Root) & (!B | Root) & (!Root | A | B))"

    def test_dnf(self) -> None:
        result = _run_cli("-f", XOR, "-n", "dnf")
        assert result.returncode == 0
        assert result.stdout.strip() == "((a & !b) | (b & !a))"

    def test_nnf(self) -> None:
        result = _run_cli("-f", XOR, "-n", "nnf")
        assert result.stdout.strip() == "((a | b) & (!a | !b))"

    def test_silent(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "-o", "silent")
        assert result.returncode == 0
        assert result.stdout == ""

    def test_verbose_progress(self) -> None:
        result = _run_cli("-f", XOR, "-n", "dnf", "-o", "verbose")
        assert "[INFO] Parsed constraints" in result.stdout
        assert "[INFO] DNF conversion complete" in result.stdout

    def test_debug_level(self) -> None:
        result = _run_cli("-f", XOR, "-n", "dnf", "-d", "3")
        assert "[DEBUG]" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Clause Export
# ---------------------------------------------------------------------------


class TestClauseExport:
    """Test --clauses and --dimacs."""

    def test_clauses(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--clauses")
        assert result.returncode == 0
        assert result.stdout.splitlines() == ["1", "-2 1", "-3 1", "-1 2 3"]

    def test_dimacs(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--dimacs")
        lines = result.stdout.splitlines()
        assert lines[0] == "p cnf 3 4"
        assert lines[1:] == ["1 0", "-2 1 0", "-3 1 0", "-1 2 3 0"]

    def test_clauses_require_cnf(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--clauses", "-n", "dnf")
        assert result.returncode == 2
        assert "--normal-form cnf" in result.stderr


# ---------------------------------------------------------------------------
# Tests: Satisfiability
# ---------------------------------------------------------------------------


class TestSatisfiability:
    """Test --check-sat verdicts and exit codes."""

    def test_satisfiable(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--check-sat")
        assert result.returncode == 0
        assert "s SATISFIABLE" in result.stdout

    def test_unsatisfiable(self) -> None:
        result = _run_cli("-f", UNSAT, "--check-sat")
        assert result.returncode == 1
        assert "s UNSATISFIABLE" in result.stdout

    def test_named_solver(self) -> None:
        result = _run_cli("-f", UNSAT, "--check-sat", "--solver", "minisat22")
        assert result.returncode == 1
        assert "s UNSATISFIABLE" in result.stdout

    def test_unknown_solver(self) -> None:
        result = _run_cli("-f", UNSAT, "--check-sat", "--solver", "dpll")
        assert result.returncode == 2

    def test_timeout_exit_code(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--check-sat", "--timeout", "0")
        assert result.returncode == 3
        assert "s TIMEOUT" in result.stdout

    def test_check_sat_from_dnf(self) -> None:
        result = _run_cli("-f", XOR, "-n", "dnf", "--check-sat")
        assert result.returncode == 0

    def test_stats(self) -> None:
        result = _run_cli("-f", FEATURE_MODEL, "--check-sat", "--stats")
        assert "=== Statistics ===" in result.stdout
        assert "Clauses: 4" in result.stdout
        assert "Decisions:" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Error Handling
# ---------------------------------------------------------------------------


class TestErrorHandling:
    """Test error handling for invalid inputs."""

    def test_nonexistent_file(self) -> None:
        result = _run_cli("-f", "/nonexistent/model.txt")
        assert result.returncode == 2
        assert "not found" in result.stderr

    def test_syntax_error(self) -> None:
        result = _run_cli("-f", MALFORMED)
        assert result.returncode == 2
        assert "Line 3" in result.stderr

    def test_lenient(self) -> None:
        result = _run_cli("-f", MALFORMED, "--lenient")
        assert result.returncode == 0
        assert "[WARN] Line 3" in result.stdout
        assert "<error: line 3:" in result.stdout

    def test_lenient_clauses_fail(self) -> None:
        result = _run_cli("-f", MALFORMED, "--lenient", "--clauses")
        assert result.returncode == 2
        assert "no clause-list encoding" in result.stderr

    @pytest.mark.parametrize("limit,code", [("1", 2), ("2", 0)])
    def test_max_clauses(self, limit: str, code: int) -> None:
        result = _run_cli("-f", XOR, "-n", "dnf", "--max-clauses", limit)
        assert result.returncode == code
