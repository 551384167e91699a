"""
Parser for propositional constraints.

Implements a grammar with proper precedence and associativity rules
to parse constraint strings into expression trees. Variable names are
resolved through a VariableMap.
"""

from __future__ import annotations

from typing import Optional

import sly

from clausal.parser.lexer import ConstraintLexer
from clausal.structure.nodes import (
    FALSE,
    TRUE,
    And,
    Biimplies,
    Formula,
    Implies,
    Not,
    Or,
)
from clausal.structure.variable_map import VariableMap


class ParseError(Exception):
    """Exception raised for parsing errors."""

    pass


class _SLYParser(sly.Parser):
    """
    SLY-based parser for propositional constraints.

    Precedence (lowest to highest):
        1. <->  (bi-implication, left-to-right)
        2. ->   (implication, right-to-left)
        3. |    (disjunction, left-to-right)
        4. &    (conjunction, left-to-right)
        5. !    (negation, right-to-left)

    Chains of & and | build a single n-ary node.
    """

    tokens = ConstraintLexer.tokens

    precedence = (
        ("left", IFF),
        ("right", IMPLIES),
        ("left", OR),
        ("left", AND),
        ("right", NOT),
    )

    def __init__(self, variable_map: VariableMap) -> None:
        self.variable_map = variable_map

    # --- Atomic formulas ---

    @_("NAME")
    def formula(self, p):
        return self.variable_map.create_literal(p.NAME)

    @_("TRUE")
    def formula(self, p):
        return TRUE

    @_("FALSE")
    def formula(self, p):
        return FALSE

    # --- Negation ---

    @_("NOT formula")
    def formula(self, p):
        return Not(p.formula)

    # --- Binary connectives ---

    @_("formula AND formula")
    def formula(self, p):
        return _chain(And, p.formula0, p.formula1)

    @_("formula OR formula")
    def formula(self, p):
        return _chain(Or, p.formula0, p.formula1)

    @_("formula IMPLIES formula")
    def formula(self, p):
        return Implies(p.formula0, p.formula1)

    @_("formula IFF formula")
    def formula(self, p):
        return Biimplies(p.formula0, p.formula1)

    # --- Parentheses ---

    @_("LPAREN formula RPAREN")
    def formula(self, p):
        return p.formula

    def error(self, token):
        if token:
            raise ParseError(
                f"Syntax error at '{token.value}' " f"(type: {token.type}, index: {token.index})"
            )
        raise ParseError("Syntax error: unexpected end of formula")


def _chain(connective, left: Formula, right: Formula) -> Formula:
    if type(left) is connective:
        return connective(*left.children, right)
    return connective(left, right)


class ConstraintParser:
    """
    Parser for propositional constraints.

    Wraps the SLY-based parser with a clean public interface. Every
    name is registered in the parser's VariableMap as a boolean
    variable on first use.

    Attributes:
        variable_map: Registry receiving the parsed variable names.
    """

    def __init__(self, variable_map: Optional[VariableMap] = None) -> None:
        self.variable_map = variable_map if variable_map is not None else VariableMap()
        self._lexer = ConstraintLexer()
        self._parser = _SLYParser(self.variable_map)

    def parse(self, text: str) -> Formula:
        """
        Parse a constraint string into an expression tree.

        Args:
            text: The constraint string to parse.

        Returns:
            The root Formula node.

        Raises:
            ParseError: If the constraint is syntactically invalid.
            LexerError: If the constraint contains an invalid character.
            TypeMismatchError: If a name refers to a non-boolean variable.
        """
        text = text.strip()
        if not text:
            raise ParseError("Syntax error: empty formula")

        result = self._parser.parse(self._lexer.tokenize(text))
        if result is None:
            raise ParseError("Syntax error: could not parse formula")
        return result
