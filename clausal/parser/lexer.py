"""
Lexical analyzer for propositional constraints.

Tokenizes constraint strings into a stream of tokens (variable names,
operators, constants, delimiters) that can be consumed by the parser.
"""

from __future__ import annotations

import sly


class LexerError(Exception):
    """Exception raised for lexical analysis errors."""
    pass


class ConstraintLexer(sly.Lexer):
    """
    Lexical analyzer for propositional constraints.

    Token Types:
        TRUE, FALSE     - Boolean constants
        NAME            - Variable names, bare or double-quoted
        NOT             - Negation
        AND, OR, IMPLIES, IFF - Binary connectives
        LPAREN, RPAREN  - Delimiters
    """

    tokens = {
        TRUE, FALSE,
        NAME,
        NOT,
        AND, OR, IMPLIES, IFF,
        LPAREN, RPAREN,
    }

    ignore = " \t\r"

    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += len(t.value)

    ignore_comment = r"\#[^\n]*"

    # <-> before ->, && before &, || before |
    IFF = r"<->|↔"
    IMPLIES = r"->|→"
    AND = r"&&|∧"
    OR = r"\|\||∨"

    NOT = r"!"
    LPAREN = r"\("
    RPAREN = r"\)"

    @_(r"&")
    def AND_SINGLE(self, t):
        t.type = "AND"
        return t

    @_(r"\|")
    def OR_SINGLE(self, t):
        t.type = "OR"
        return t

    @_(r"¬")
    def NOT_UNICODE(self, t):
        t.type = "NOT"
        return t

    # Feature names may contain spaces or dashes when quoted.
    @_(r'"[^"\n]+"')
    def QUOTED_NAME(self, t):
        t.type = "NAME"
        t.value = t.value[1:-1]
        return t

    @_(r"[a-zA-Z_][a-zA-Z0-9_'\.]*")
    def NAME(self, t):
        keywords = {
            "TRUE": "TRUE",
            "true": "TRUE",
            "FALSE": "FALSE",
            "false": "FALSE",
            "not": "NOT",
            "and": "AND",
            "or": "OR",
            "implies": "IMPLIES",
            "iff": "IFF",
        }
        t.type = keywords.get(t.value, "NAME")
        return t

    def error(self, t):
        """Handle invalid characters."""
        raise LexerError(
            f"Invalid character '{t.value[0]}' at index {self.index}"
        )
