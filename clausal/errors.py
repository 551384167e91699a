"""
Exception taxonomy for CLAUSAL.

Lookups and type checks fail fast with one of these exceptions.
Malformed sub-expressions are not raised at all: they live in the
tree as ErrorLiteral nodes and travel through every transformation.
"""

from __future__ import annotations


class ClausalError(Exception):
    """Base class for all errors raised by the formula core."""

    pass


class UnknownVariableError(ClausalError, KeyError):
    """Raised when a name or index is not present in a VariableMap."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class DuplicateIndexError(ClausalError, ValueError):
    """Raised when an explicit index is already occupied."""

    pass


class DuplicateNameError(ClausalError, ValueError):
    """Raised when a name is already registered."""

    pass


class TypeMismatchError(ClausalError, TypeError):
    """
    Raised when a type constraint is violated.

    Either a child's declared type does not match the type its parent
    requires, or an assigned value does not match a variable's type.
    """

    pass


class NormalFormViolationError(ClausalError):
    """Raised when a transformation cannot produce the requested normal form."""

    pass
