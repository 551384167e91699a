"""
Negation normal form conversion.

Pushes every negation down to the literals with De Morgan's laws,
double negation elimination and quantifier duality, and eliminates
implications and bi-implications on the way. A negation that reaches
a literal is absorbed into the literal's polarity, so the result
contains no Not nodes at all.
"""

from __future__ import annotations

from typing import List, Optional

from clausal.core.traversal import reduce, rewrite, size
from clausal.errors import TypeMismatchError
from clausal.structure.nodes import (
    And,
    Biimplies,
    Exists,
    Expression,
    ForAll,
    Formula,
    Implies,
    Literal,
    Not,
    Or,
)
from clausal.utils.logger import SILENT, LogLevel, TransformLogger


def to_nnf(formula: Formula, logger: Optional[TransformLogger] = None) -> Formula:
    """
    Convert a formula to strict negation normal form.

    Nested conjunctions and disjunctions are flattened. The input is
    left untouched; the result shares no nodes with it.

    Args:
        formula: The formula to convert.
        logger: Optional logger for debug output.

    Returns:
        An equivalent formula built from And, Or, quantifiers and literals.

    Raises:
        TypeMismatchError: If *formula* is not boolean-valued.
    """
    logger = logger or SILENT
    if not isinstance(formula, Formula):
        raise TypeMismatchError(f"Expected a formula, got {type(formula).__name__}")

    pushed = rewrite(formula, push_negation)
    result = reduce(pushed, flatten)

    if logger.enabled(LogLevel.DEBUG):
        logger.debug("NNF conversion", input_nodes=size(formula), output_nodes=size(result))
    return result  # type: ignore[return-value]


def push_negation(node: Expression) -> Optional[Expression]:
    """
    Rewrite rule moving one negation a level down.

    Returns the replacement for *node*, or None when no rule applies.
    """
    if isinstance(node, Implies):
        return Or(Not(node.left), node.right)
    if isinstance(node, Biimplies):
        return And(Or(Not(node.left), node.right), Or(node.left, Not(node.right)))
    if not isinstance(node, Not):
        return None

    operand = node.operand
    if isinstance(operand, Literal):
        return operand.flip()
    if isinstance(operand, Not):
        return operand.operand
    if isinstance(operand, And):
        return Or(*(Not(child) for child in operand.children))
    if isinstance(operand, Or):
        return And(*(Not(child) for child in operand.children))
    if isinstance(operand, Implies):
        return And(operand.left, Not(operand.right))
    if isinstance(operand, Biimplies):
        return And(
            Or(operand.left, operand.right),
            Or(Not(operand.left), Not(operand.right)),
        )
    if isinstance(operand, ForAll):
        return Exists(operand.variable, Not(operand.body))
    if isinstance(operand, Exists):
        return ForAll(operand.variable, Not(operand.body))
    raise TypeMismatchError(f"Cannot negate {type(operand).__name__}")


def flatten(node: Expression, children: List[Expression]) -> Expression:
    """Rebuild *node*, merging children of the same connective into it."""
    if isinstance(node, (And, Or)):
        merged: List[Expression] = []
        for child in children:
            if type(child) is type(node):
                merged.extend(child.children)
            else:
                merged.append(child)
        return node.with_children(merged)
    return node.with_children(children)
