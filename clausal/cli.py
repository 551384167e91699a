"""
Command-line interface for the CLAUSAL normal form converter.

Provides argument parsing and orchestration for converting constraint
files into NNF, CNF or DNF, exporting clause lists, and checking
satisfiability with the reference solver.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

import clausal
from clausal.analysis.solver import SOLVER_NAMES, PySatSolver, SatResult
from clausal.core.clauses import to_clause_list, to_dimacs
from clausal.core.normal_form import NormalForm, convert, to_cnf
from clausal.core.traversal import depth
from clausal.parser.formula import parse_constraints
from clausal.structure.variable_map import VariableMap
from clausal.utils.logger import LogLevel, TransformLogger

EXIT_OK = 0
EXIT_UNSATISFIABLE = 1
EXIT_ERROR = 2
EXIT_TIMEOUT = 3


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLAUSAL CLI."""
    parser = argparse.ArgumentParser(
        prog="clausal",
        description=(
            "CLAUSAL: normal form conversion of propositional constraints "
            "for satisfiability backends"
        ),
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument(
        "-f",
        "--formula",
        type=Path,
        required=True,
        help="Path to constraint file, one constraint per line",
    )

    parser.add_argument(
        "-n",
        "--normal-form",
        choices=["nnf", "cnf", "dnf"],
        default="cnf",
        help="Target normal form (default: cnf)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Produce the exact two-level shape, wrapping single literals",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Keep unparsable lines as error literals instead of failing",
    )
    parser.add_argument(
        "--clauses",
        action="store_true",
        help="Print CNF clauses as signed integer arrays",
    )
    parser.add_argument(
        "--dimacs",
        action="store_true",
        help="Print CNF in DIMACS format",
    )
    parser.add_argument(
        "--check-sat",
        action="store_true",
        help="Check satisfiability with a python-sat solver",
    )
    parser.add_argument(
        "--solver",
        choices=SOLVER_NAMES,
        default="glucose4",
        help="python-sat solver used by --check-sat (default: glucose4)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Solver timeout in seconds (default: none)",
    )
    parser.add_argument(
        "--max-clauses",
        type=int,
        default=None,
        metavar="N",
        help="Abort when one expansion produces more than N clauses",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["silent", "normal", "verbose"],
        default="normal",
        help="Output level (default: normal)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=0,
        help="Debug level 0-3 (default: 0)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics after conversion",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"clausal {clausal.__version__}",
    )

    return parser


def _resolve_log_level(output: str, debug: int) -> LogLevel:
    """Determine the effective log level from output and debug settings."""
    if debug >= 3:
        return LogLevel.DEBUG
    if output == "verbose" or debug >= 1:
        return LogLevel.VERBOSE
    if output == "silent":
        return LogLevel.SILENT
    return LogLevel.NORMAL


def main() -> None:
    """Entry point for the ``clausal`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args()

    try:
        _run(args)
    except SystemExit:
        raise
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_ERROR)


def _run(args: argparse.Namespace) -> None:
    """Execute the conversion pipeline."""
    if not args.formula.exists():
        print(f"Error: Formula file not found: {args.formula}", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    normal_form = NormalForm(args.normal_form)
    if (args.clauses or args.dimacs) and normal_form is not NormalForm.CNF:
        print("Error: --clauses and --dimacs require --normal-form cnf", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    log_level = _resolve_log_level(args.output, args.debug)
    logger = TransformLogger(level=log_level, stream=sys.stdout)

    variable_map = VariableMap()
    with args.formula.open(encoding="utf-8") as lines:
        formula = parse_constraints(lines, variable_map, lenient=args.lenient, logger=logger)
    logger.info(
        "Parsed constraints",
        variables=len(variable_map),
        depth=depth(formula),
    )

    conversion = convert(
        formula,
        normal_form,
        strict=args.strict,
        max_clauses=args.max_clauses,
        logger=logger,
    )
    statistics: Dict[str, Any] = {"variables": len(variable_map)}
    statistics.update(conversion.statistics)

    if args.clauses or args.dimacs:
        clause_list = to_clause_list(conversion.formula, variable_map)
        if args.dimacs:
            logger.result(to_dimacs(clause_list).rstrip("\n"))
        else:
            for clause in clause_list:
                logger.result(" ".join(str(literal) for literal in clause))
    else:
        logger.result(str(conversion.formula))

    exit_code = EXIT_OK
    if args.check_sat:
        cnf = conversion.formula if normal_form is NormalForm.CNF else to_cnf(formula)
        with PySatSolver(name=args.solver, logger=logger) as solver:
            solver.add_clauses(to_clause_list(cnf, variable_map))
            verdict = solver.has_solution(timeout=args.timeout)
            statistics["decisions"] = solver.decisions
        logger.sat_result(verdict.value)
        if verdict is SatResult.UNSATISFIABLE:
            exit_code = EXIT_UNSATISFIABLE
        elif verdict is SatResult.TIMEOUT:
            exit_code = EXIT_TIMEOUT

    if args.stats:
        if log_level.value >= LogLevel.VERBOSE.value:
            logger.statistics(statistics)
        else:
            print()
            print("=== Statistics ===")
            for key, value in statistics.items():
                label = key.replace("_", " ").title()
                print(f"  {label}: {value}")

    sys.exit(exit_code)
