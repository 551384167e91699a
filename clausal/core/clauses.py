"""
Clause-list encoding of CNF formulas.

Satisfiability backends read a CNF formula as a list of clauses, each
clause a sequence of non-zero signed integers: +i for variable i, -i
for its negation. The width of every assignment is the variable count
of the registry the formula was built against.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from clausal.core.testers import is_cnf
from clausal.errors import NormalFormViolationError
from clausal.structure.nodes import (
    And,
    Expression,
    FalseLiteral,
    Formula,
    Not,
    Or,
    TrueLiteral,
    VariableLiteral,
)
from clausal.structure.variable_map import VariableMap


@dataclass(frozen=True)
class ClauseList:
    """
    A CNF formula as signed-integer clauses.

    Attributes:
        clauses: The clauses, each a tuple of non-zero signed indices.
        variable_count: Width of assignments over this clause list.
    """

    clauses: Tuple[Tuple[int, ...], ...]
    variable_count: int

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        return iter(self.clauses)

    def __len__(self) -> int:
        return len(self.clauses)

    def __getitem__(self, position: int) -> Tuple[int, ...]:
        return self.clauses[position]


def to_clause_list(
    formula: Formula,
    variable_map: Optional[VariableMap] = None,
) -> ClauseList:
    """
    Encode a CNF formula as a clause list.

    Strict and non-strict CNF are both accepted. A clause containing
    TRUE is dropped, FALSE literals are dropped from their clause.

    Args:
        formula: A formula in (non-strict) CNF.
        variable_map: Registry to encode against. Literals built against
            another registry are resolved by name. Defaults to the
            registry of the first variable literal.

    Returns:
        The clause list.

    Raises:
        NormalFormViolationError: If *formula* is not CNF or contains a
            literal that has no integer encoding (error or comparison).
        UnknownVariableError: If a literal's name is missing from
            *variable_map*.
    """
    if not is_cnf(formula):
        raise NormalFormViolationError(
            f"Clause lists require CNF input, convert with to_cnf() first: {formula}"
        )

    clause_nodes: Sequence[Expression] = (
        formula.children if isinstance(formula, And) else (formula,)
    )
    clauses: List[Tuple[int, ...]] = []
    for clause in clause_nodes:
        literals = clause.children if isinstance(clause, Or) else (clause,)
        encoded: List[int] = []
        satisfied = False
        for literal in literals:
            positive = True
            if isinstance(literal, Not):
                positive = False
                literal = literal.operand
            if isinstance(literal, TrueLiteral):
                satisfied = satisfied or positive
                continue
            if isinstance(literal, FalseLiteral):
                satisfied = satisfied or not positive
                continue
            if not isinstance(literal, VariableLiteral):
                raise NormalFormViolationError(
                    f"Literal {literal} has no clause-list encoding"
                )
            if variable_map is None:
                variable_map = literal.variable_map
            value = _resolve(literal, variable_map)
            encoded.append(value if positive else -value)
        if not satisfied:
            clauses.append(tuple(encoded))

    count = variable_map.variable_count if variable_map is not None else 0
    return ClauseList(tuple(clauses), count)


def _resolve(literal: VariableLiteral, variable_map: VariableMap) -> int:
    if literal.variable_map is variable_map:
        return literal.value
    index = variable_map.require(literal.variable_name).index
    return index if literal.positive else -index


def from_clause_list(
    clauses: Iterable[Sequence[int]],
    variable_map: VariableMap,
) -> And:
    """
    Build a strict CNF formula from signed-integer clauses.

    Raises:
        ValueError: If a clause contains 0.
        UnknownVariableError: If an index is not registered.
    """
    return And(
        *(Or(*(VariableLiteral(value, variable_map) for value in clause)) for clause in clauses)
    )


def to_dimacs(clause_list: ClauseList, comments: Iterable[str] = ()) -> str:
    """Render a clause list in DIMACS CNF format."""
    lines = [f"c {comment}" for comment in comments]
    lines.append(f"p cnf {clause_list.variable_count} {len(clause_list)}")
    for clause in clause_list:
        lines.append(" ".join(str(value) for value in (*clause, 0)))
    return "\n".join(lines) + "\n"
