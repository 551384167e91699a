"""
Evaluation of expression trees under variable assignments.

A tree is evaluated bottom-up on an explicit stack: literals take their variable's value
honoring polarity, connectives apply boolean semantics and functions
fold their arguments. A value that is missing anywhere below a node
makes that node unknown (None) instead of raising.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from clausal.errors import TypeMismatchError, UnknownVariableError
from clausal.structure.nodes import (
    And,
    Biimplies,
    Comparison,
    Constant,
    ErrorLiteral,
    Expression,
    FalseLiteral,
    ForAll,
    Function,
    Implies,
    Not,
    Or,
    Quantifier,
    TrueLiteral,
    Variable,
    VariableLiteral,
)
from clausal.structure.variable_map import Key, VariableMap


class Assignment:
    """
    Values for the variables of a VariableMap.

    Values are stored by index and checked against the declared type
    of their variable when set.

    Attributes:
        variable_map: The registry whose variables are assigned.
    """

    def __init__(
        self,
        variable_map: VariableMap,
        values: Optional[Mapping[Key, Any]] = None,
    ) -> None:
        self.variable_map = variable_map
        self._values: Dict[int, Any] = {}
        for key, value in (values or {}).items():
            self.set(key, value)

    @classmethod
    def from_literals(cls, literals: Iterable[int], variable_map: VariableMap) -> Assignment:
        """Build a boolean assignment from signed literals (+i true, -i false)."""
        assignment = cls(variable_map)
        for literal in literals:
            if literal == 0:
                raise ValueError("Literal 0 is not a valid variable reference")
            assignment.set(abs(literal), literal > 0)
        return assignment

    def set(self, key: Key, value: Any) -> None:
        """
        Assign *value* to a variable; None removes the assignment.

        Raises:
            UnknownVariableError: If the variable does not exist.
            TypeMismatchError: If *value* is not of the declared type.
        """
        signature = self.variable_map.require(key)
        if value is None:
            self._values.pop(signature.index, None)
            return
        if type(value) is not signature.type:
            raise TypeMismatchError(
                f"Variable '{signature.name}' has type {signature.type.__name__}, "
                f"cannot assign {value!r}"
            )
        self._values[signature.index] = value

    def unset(self, key: Key) -> None:
        self.set(key, None)

    def get(self, key: Key) -> Optional[Any]:
        """Return the value of a variable, or None if unassigned."""
        return self._values.get(self.variable_map.require(key).index)

    def to_literals(self) -> List[int]:
        """Return the boolean part of the assignment as signed literals."""
        return [
            index if value else -index
            for index, value in sorted(self._values.items())
            if type(value) is bool
        ]

    def as_dict(self) -> Dict[int, Any]:
        return dict(self._values)

    def items(self) -> Iterator[Tuple[int, Any]]:
        return iter(sorted(self._values.items()))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (int, str)):
            return False
        signature = self.variable_map.get(key)
        return signature is not None and signature.index in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        entries = ", ".join(
            f"{self.variable_map.get_name(i)}={v}" for i, v in sorted(self._values.items())
        )
        return f"Assignment({entries})"


def evaluate(
    node: Expression,
    assignment: Union[Assignment, Mapping[Key, Any]],
) -> Any:
    """
    Evaluate a tree under an assignment.

    Args:
        node: Formula or term to evaluate.
        assignment: An Assignment, or a mapping from variable index or
            name to value.

    Returns:
        The value of *node*, or None if it depends on an unassigned
        variable or an ErrorLiteral.

    Raises:
        UnknownVariableError: If the tree references a variable that is
            not registered.
        TypeMismatchError: If an assigned value does not match its
            variable's declared type.
    """
    if isinstance(assignment, Assignment):
        values: Mapping[Key, Any] = assignment.as_dict()
    else:
        values = dict(assignment)
    return _run(node, values)


class _Frame:
    """A node under evaluation, the values it sees and its pending operands."""

    __slots__ = ("node", "values", "operands", "position", "results")

    def __init__(self, node: Expression, values: Mapping[Key, Any]) -> None:
        self.node = node
        self.values = values
        self.position = 0
        self.results: List[Any] = []
        if isinstance(node, Quantifier):
            self.operands = _bindings(node, values)
        else:
            self.operands = [(child, values) for child in node.children]


def _run(node: Expression, values: Mapping[Key, Any]) -> Any:
    """Evaluate bottom-up; a quantifier body is walked once per binding of its variable."""
    stack = [_Frame(node, values)]
    while True:
        frame = stack[-1]
        if frame.position < len(frame.operands):
            operand, operand_values = frame.operands[frame.position]
            frame.position += 1
            stack.append(_Frame(operand, operand_values))
            continue
        stack.pop()
        value = _value(frame)
        if not stack:
            return value
        stack[-1].results.append(value)


def _bindings(
    node: Quantifier, values: Mapping[Key, Any]
) -> List[Tuple[Expression, Mapping[Key, Any]]]:
    """Return the body once per value of a boolean bound variable, else nothing."""
    variable = node.variable
    if variable.type is not bool:
        return []
    bindings: List[Tuple[Expression, Mapping[Key, Any]]] = []
    for candidate in (False, True):
        bound = dict(values)
        bound.pop(variable.variable_name, None)
        bound[variable.index] = candidate
        bindings.append((node.body, bound))
    return bindings


def _lookup(values: Mapping[Key, Any], index: int, variable_map: VariableMap) -> Any:
    signature = variable_map.get(index)
    if signature is None:
        raise UnknownVariableError(f"Unknown variable {index!r}")
    value = values.get(index)
    if value is None:
        value = values.get(signature.name)
    if value is not None and type(value) is not signature.type:
        raise TypeMismatchError(
            f"Variable '{signature.name}' has type {signature.type.__name__}, "
            f"got {value!r}"
        )
    return value


def _value(frame: _Frame) -> Any:
    node, results = frame.node, frame.results
    if isinstance(node, VariableLiteral):
        value = _lookup(frame.values, node.index, node.variable_map)
        if value is None:
            return None
        return value if node.positive else not value
    if isinstance(node, TrueLiteral):
        return True
    if isinstance(node, FalseLiteral):
        return False
    if isinstance(node, ErrorLiteral):
        return None
    if isinstance(node, Variable):
        return _lookup(frame.values, node.index, node.variable_map)
    if isinstance(node, Constant):
        return node.value

    if isinstance(node, Quantifier):
        # A non-boolean bound variable has no bindings.
        if not results or any(value is None for value in results):
            return None
        return all(results) if isinstance(node, ForAll) else any(results)

    if any(value is None for value in results):
        return None
    if isinstance(node, Comparison):
        result = node.compare(*results)
        return result if node.positive else not result
    if isinstance(node, Not):
        return not results[0]
    if isinstance(node, And):
        return all(results)
    if isinstance(node, Or):
        return any(results)
    if isinstance(node, Implies):
        return (not results[0]) or results[1]
    if isinstance(node, Biimplies):
        return results[0] == results[1]
    if isinstance(node, Function):
        return node.apply(results)
    raise TypeError(f"Cannot evaluate {type(node).__name__}")  # pragma: no cover
