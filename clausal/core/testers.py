"""
Normal form predicates.

Decide whether a formula is already in negation, conjunctive or
disjunctive normal form. Each predicate is a single pass over the
tree and never modifies it.

The non-strict forms accept shallower shapes that are semantically
clausal (a lone literal or a single clause counts as CNF); the strict
forms demand the exact canonical nesting.
"""

from __future__ import annotations

from enum import Enum
from typing import Type

from clausal.core.traversal import iter_preorder
from clausal.structure.nodes import (
    And,
    Connective,
    Expression,
    Literal,
    Not,
    Or,
    Quantifier,
    Term,
)


class NormalForm(Enum):
    """The normal forms a formula can be tested for or converted to."""

    NNF = "nnf"
    CNF = "cnf"
    DNF = "dnf"


def is_nnf(formula: Expression, strict: bool = False) -> bool:
    """
    Return whether *formula* is in negation normal form.

    Only conjunctions, disjunctions and quantifiers may appear above
    literals. The non-strict form also allows a negation applied
    directly to a literal.
    """
    for node in iter_preorder(formula):
        if isinstance(node, (Literal, Term, And, Or, Quantifier)):
            continue
        if not strict and isinstance(node, Not) and isinstance(node.operand, Literal):
            continue
        return False
    return True


def is_cnf(formula: Expression, strict: bool = False) -> bool:
    """
    Return whether *formula* is in conjunctive normal form.

    Strict: a conjunction of disjunctions of literals, exactly.
    Non-strict: also a literal, a single disjunction of literals, or a
    conjunction mixing literals and such disjunctions.
    """
    return _is_clausal(formula, And, Or, strict)


def is_dnf(formula: Expression, strict: bool = False) -> bool:
    """
    Return whether *formula* is in disjunctive normal form.

    Strict: a disjunction of conjunctions of literals, exactly.
    Non-strict: also a literal, a single conjunction of literals, or a
    disjunction mixing literals and such conjunctions.
    """
    return _is_clausal(formula, Or, And, strict)


def is_normal_form(
    formula: Expression, normal_form: NormalForm, strict: bool = False
) -> bool:
    """Dispatch to the predicate for *normal_form*."""
    if normal_form is NormalForm.NNF:
        return is_nnf(formula, strict)
    if normal_form is NormalForm.CNF:
        return is_cnf(formula, strict)
    return is_dnf(formula, strict)


def is_literal(node: Expression, strict: bool = False) -> bool:
    """Return whether *node* counts as a literal (non-strict: also a negated literal)."""
    if isinstance(node, Literal):
        return True
    return not strict and isinstance(node, Not) and isinstance(node.operand, Literal)


def _is_clause(node: Expression, inner: Type[Connective], strict: bool) -> bool:
    return isinstance(node, inner) and all(
        is_literal(child, strict) for child in node.children
    )


def _is_clausal(
    formula: Expression,
    outer: Type[Connective],
    inner: Type[Connective],
    strict: bool,
) -> bool:
    if strict:
        return isinstance(formula, outer) and all(
            _is_clause(child, inner, True) for child in formula.children
        )
    if is_literal(formula) or _is_clause(formula, inner, False):
        return True
    return isinstance(formula, outer) and all(
        is_literal(child) or _is_clause(child, inner, False)
        for child in formula.children
    )
