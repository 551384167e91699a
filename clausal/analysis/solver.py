"""
Satisfiability backends.

SatSolver is the interface analysis code programs against: clauses go
in as signed-integer arrays, has_solution() answers with a SatResult,
and solution() returns the last model as a full literal array.

PySatSolver binds the interface to the incremental CDCL solvers of
python-sat (Glucose 4 by default). A timeout interrupts the running
search from a timer thread.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pysat.solvers import Solver

from clausal.core.clauses import ClauseList, to_clause_list
from clausal.core.normal_form import to_cnf
from clausal.structure.nodes import Formula
from clausal.structure.variable_map import VariableMap
from clausal.utils.logger import SILENT, TransformLogger

# python-sat solvers that support interrupting solve_limited().
SOLVER_NAMES = ("glucose4", "glucose3", "minisat22", "maplesat")


class SatResult(Enum):
    """Outcome of a satisfiability check."""

    SATISFIABLE = "SATISFIABLE"
    UNSATISFIABLE = "UNSATISFIABLE"
    TIMEOUT = "TIMEOUT"


class SatSolver(ABC):
    """Interface of satisfiability backends over signed-integer clauses."""

    @abstractmethod
    def add_clauses(self, clauses: Iterable[Sequence[int]]) -> None:
        """Add clauses; each is a sequence of non-zero signed indices."""

    @abstractmethod
    def has_solution(self, timeout: Optional[float] = None) -> SatResult:
        """
        Decide satisfiability of all clauses added so far.

        Args:
            timeout: Seconds before giving up with SatResult.TIMEOUT.
        """

    @abstractmethod
    def solution(self) -> Optional[List[int]]:
        """Return the model found by the last satisfiable check, or None."""

    def add_formula(self, formula: Formula, variable_map: Optional[VariableMap] = None) -> None:
        """Convert *formula* to CNF and add its clauses."""
        self.add_clauses(to_clause_list(to_cnf(formula), variable_map))


class PySatSolver(SatSolver):
    """
    Backend over a python-sat solver.

    Clauses are added incrementally, so has_solution() may be called
    again after more clauses (e.g. blocking clauses) were added.

    Attributes:
        name: python-sat solver name, one of SOLVER_NAMES.
        variable_count: Width of the returned models. Grows to the
            largest index seen in the added clauses.
        decisions: Decisions made by the solver so far.
    """

    def __init__(
        self,
        name: str = "glucose4",
        variable_count: int = 0,
        logger: Optional[TransformLogger] = None,
    ) -> None:
        if name not in SOLVER_NAMES:
            raise ValueError(
                f"Unsupported solver '{name}', expected one of {', '.join(SOLVER_NAMES)}"
            )
        self.name = name
        self.variable_count = variable_count
        self.logger = logger or SILENT
        self.decisions = 0
        self._solver = Solver(name=name)
        self._clause_count = 0
        # An empty clause is never handed to the solver.
        self._contradiction = False
        self._model: Optional[List[int]] = None

    def add_clauses(self, clauses: Iterable[Sequence[int]]) -> None:
        if isinstance(clauses, ClauseList):
            self.variable_count = max(self.variable_count, clauses.variable_count)
        for clause in clauses:
            if any(literal == 0 for literal in clause):
                raise ValueError(f"Clause {tuple(clause)} contains the literal 0")
            self._clause_count += 1
            if not clause:
                self._contradiction = True
                continue
            self._solver.add_clause([int(literal) for literal in clause])
            for literal in clause:
                self.variable_count = max(self.variable_count, abs(literal))
        self._model = None

    def solution(self) -> Optional[List[int]]:
        return list(self._model) if self._model is not None else None

    def has_solution(self, timeout: Optional[float] = None) -> SatResult:
        self._model = None
        if self._contradiction:
            result = SatResult.UNSATISFIABLE
        elif timeout is not None and timeout <= 0:
            result = SatResult.TIMEOUT
        else:
            result = self._solve(timeout)

        if result is SatResult.SATISFIABLE:
            values = {abs(literal): literal > 0 for literal in self._solver.get_model() or ()}
            self._model = [
                index if values.get(index, False) else -index
                for index in range(1, self.variable_count + 1)
            ]
        self.decisions = self._solver.accum_stats().get("decisions", 0)
        self.logger.info(
            "SAT search finished",
            solver=self.name,
            result=result.value,
            clauses=self._clause_count,
            decisions=self.decisions,
        )
        return result

    def _solve(self, timeout: Optional[float]) -> SatResult:
        timer = None
        if timeout is not None:
            timer = threading.Timer(timeout, self._solver.interrupt)
            timer.start()
        try:
            outcome = self._solver.solve_limited(expect_interrupt=timer is not None)
        finally:
            if timer is not None:
                timer.cancel()
                self._solver.clear_interrupt()

        if outcome is None:
            return SatResult.TIMEOUT
        return SatResult.SATISFIABLE if outcome else SatResult.UNSATISFIABLE

    def delete(self) -> None:
        """Release the underlying solver."""
        self._solver.delete()

    def __enter__(self) -> PySatSolver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.delete()
