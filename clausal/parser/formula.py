"""
Formula utilities for constraint files.

Provides convenience functions for parsing single constraints and whole
constraint files, inspecting parsed formulas, and constant folding.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Optional

from clausal.core.traversal import iter_preorder, reduce
from clausal.parser.grammar import ConstraintParser, ParseError
from clausal.parser.lexer import LexerError
from clausal.structure.nodes import (
    FALSE,
    TRUE,
    And,
    ErrorLiteral,
    Expression,
    FalseLiteral,
    Formula,
    Not,
    Or,
    TrueLiteral,
    VariableLiteral,
)
from clausal.structure.variable_map import VariableMap
from clausal.utils.logger import SILENT, TransformLogger


def parse_formula(text: str, variable_map: Optional[VariableMap] = None) -> Formula:
    """
    Parse a constraint string into an expression tree.

    Args:
        text: The constraint string.
        variable_map: Registry for the variable names. A fresh one is
            used if omitted.

    Returns:
        The root Formula node.

    Raises:
        ParseError: If the constraint is syntactically invalid.
        LexerError: If the constraint contains an invalid character.
    """
    return ConstraintParser(variable_map).parse(text)


def parse_constraints(
    lines: Iterable[str],
    variable_map: VariableMap,
    lenient: bool = False,
    logger: Optional[TransformLogger] = None,
) -> Formula:
    """
    Parse one constraint per line and conjoin them.

    Blank lines and lines starting with '#' are skipped.

    Args:
        lines: Constraint lines, e.g. an open file.
        variable_map: Registry for the variable names.
        lenient: Turn a line that fails to parse into an ErrorLiteral
            carrying the diagnostic instead of raising.
        logger: Optional logger; lenient mode warns about each bad line.

    Returns:
        The conjunction of all constraints (TRUE if there are none, the
        constraint itself if there is exactly one).

    Raises:
        ParseError: On the first bad line, unless *lenient*.
        LexerError: On the first bad character, unless *lenient*.
    """
    logger = logger or SILENT
    parser = ConstraintParser(variable_map)
    constraints: List[Formula] = []
    for line_number, line in enumerate(lines, start=1):
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        try:
            constraints.append(parser.parse(text))
        except (ParseError, LexerError) as e:
            if not lenient:
                raise type(e)(f"Line {line_number}: {e}") from e
            logger.warning(f"Line {line_number}: {e}")
            constraints.append(ErrorLiteral(f"line {line_number}: {e}"))

    if not constraints:
        return TRUE
    if len(constraints) == 1:
        return constraints[0]
    return And(*constraints)


def variable_names(formula: Expression) -> FrozenSet[str]:
    """
    Return the names of all variables appearing as literals in the formula.

    Args:
        formula: The formula to inspect.

    Returns:
        A frozenset of variable name strings.
    """
    return frozenset(
        node.variable_name for node in iter_preorder(formula) if isinstance(node, VariableLiteral)
    )


def has_errors(formula: Expression) -> bool:
    """Return whether the formula contains an ErrorLiteral."""
    return any(isinstance(node, ErrorLiteral) for node in iter_preorder(formula))


def simplify(formula: Formula) -> Formula:
    """
    Fold TRUE and FALSE out of a formula.

    Simplification rules applied bottom-up:
        - !!phi          -> phi
        - !TRUE          -> FALSE, !FALSE -> TRUE
        - TRUE in an &   -> dropped; FALSE in an & -> FALSE
        - FALSE in a |   -> dropped; TRUE in a | -> TRUE
        - & or | with one child -> that child
        - &() -> TRUE, |() -> FALSE

    Args:
        formula: The formula to simplify.

    Returns:
        A new, equivalent formula.
    """
    return reduce(formula, _simplify_node)


def _simplify_node(node: Expression, children: List[Expression]) -> Expression:
    if isinstance(node, Not):
        operand = children[0]
        if isinstance(operand, (TrueLiteral, FalseLiteral)):
            return operand.flip()
        if isinstance(operand, Not):
            return operand.operand
        return Not(operand)

    if isinstance(node, (And, Or)):
        if isinstance(node, And):
            neutral, absorbing = TRUE, FALSE
        else:
            neutral, absorbing = FALSE, TRUE
        kept: List[Expression] = []
        for child in children:
            if child == absorbing:
                return absorbing
            if child != neutral:
                kept.append(child)
        if not kept:
            return neutral
        if len(kept) == 1:
            return kept[0]
        return node.with_children(kept)

    return node.with_children(children)
