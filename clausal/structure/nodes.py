"""
Expression tree node definitions.

Defines immutable, hashable nodes for formulas and terms:
connectives (conjunction, disjunction, negation, implication,
bi-implication, quantifiers), literals (variable literals, the TRUE and
FALSE constants, error sentinels, comparison predicates) and terms
(variables, constants, additive functions).

Nodes never change after construction. Rewrites build new nodes via
with_children(). Equality is structural and hashing uses a value
computed once from the children's hashes, so neither walks the tree
recursively.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Optional, Sequence, Tuple, Union

from clausal.errors import TypeMismatchError

if TYPE_CHECKING:
    from clausal.structure.variable_map import VariableMap

ChildTypes = Union[type, Tuple[type, ...], None]


def _as_types(types: ChildTypes) -> Tuple[type, ...]:
    if types is None:
        return ()
    if isinstance(types, tuple):
        return types
    return (types,)


class Expression(ABC):
    """
    Base class for all expression nodes.

    Attributes:
        name: Operator identity of the node.
        type: Type the node evaluates to.
        children: Ordered tuple of child expressions.
        children_type: Type (or tuple of types) every child must have,
            or None if unconstrained.
    """

    __slots__ = ("_children", "_hash")

    name: ClassVar[str] = ""
    children_type: ClassVar[ChildTypes] = None
    child_class: ClassVar[Optional[type]] = None

    def __init__(self, children: Iterable[Expression] = ()) -> None:
        self._children: Tuple[Expression, ...] = tuple(children)
        for child in self._children:
            self.check_child(child)
        self._hash: int = self._compute_hash()

    def check_child(self, child: Any) -> None:
        expected = self.child_class or Expression
        if not isinstance(child, expected):
            raise TypeMismatchError(
                f"{type(self).__name__} expects {expected.__name__} children, "
                f"got {type(child).__name__}"
            )
        if not self.accepts(child):
            raise TypeMismatchError(
                f"{type(self).__name__} expects children of type "
                f"{' or '.join(t.__name__ for t in _as_types(self.children_type))}, "
                f"got {child.type.__name__} from {child}"
            )

    def _compute_hash(self) -> int:
        return hash((self.name, self._key(), tuple(c._hash for c in self._children)))

    @property
    def children(self) -> Tuple[Expression, ...]:
        return self._children

    @property
    @abstractmethod
    def type(self) -> type:
        """Return the type this expression evaluates to."""

    def accepts(self, child: Expression) -> bool:
        """Return whether *child* satisfies this node's child type constraint."""
        allowed = _as_types(self.children_type)
        return not allowed or child.type in allowed

    def _key(self) -> Tuple[Any, ...]:
        """Node attributes that take part in equality, excluding children."""
        return ()

    @abstractmethod
    def with_children(self, children: Sequence[Expression]) -> Expression:
        """Return a new node of the same kind with the given children."""

    @abstractmethod
    def _format(self, parts: Sequence[str]) -> str:
        """Render this node given the rendered children."""

    def clone(self) -> Expression:
        """Return a deep copy of this tree."""
        from clausal.core.traversal import clone

        return clone(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        from clausal.core.traversal import equals

        return equals(self, other)

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        from clausal.core.traversal import to_string

        return to_string(self)

    def __repr__(self) -> str:
        return str(self)


# === Formulas ===


class Formula(Expression):
    """Base class for boolean-valued expressions."""

    __slots__ = ()

    @property
    def type(self) -> type:
        return bool


class Connective(Formula):
    """Base class for connectives; all children are formulas."""

    __slots__ = ()

    children_type = bool
    child_class = Formula


class And(Connective):
    """
    Represents a conjunction of any number of formulas.

    And() with no children is true.
    """

    __slots__ = ()

    name = "and"

    def __init__(self, *children: Formula) -> None:
        super().__init__(children)

    def with_children(self, children: Sequence[Expression]) -> And:
        return And(*children)

    def _format(self, parts: Sequence[str]) -> str:
        return f"({' & '.join(parts)})" if parts else "and()"


class Or(Connective):
    """
    Represents a disjunction of any number of formulas.

    Or() with no children is false.
    """

    __slots__ = ()

    name = "or"

    def __init__(self, *children: Formula) -> None:
        super().__init__(children)

    def with_children(self, children: Sequence[Expression]) -> Or:
        return Or(*children)

    def _format(self, parts: Sequence[str]) -> str:
        return f"({' | '.join(parts)})" if parts else "or()"


class Not(Connective):
    """
    Represents !phi.

    Attributes:
        operand: The negated formula.
    """

    __slots__ = ()

    name = "not"

    def __init__(self, operand: Formula) -> None:
        super().__init__((operand,))

    @property
    def operand(self) -> Formula:
        return self._children[0]  # type: ignore[return-value]

    def with_children(self, children: Sequence[Expression]) -> Not:
        return Not(*children)

    def _format(self, parts: Sequence[str]) -> str:
        return f"!{parts[0]}"


class _BinaryConnective(Connective):
    """Base class for two-operand connectives (not part of public API)."""

    __slots__ = ()

    _op_symbol: ClassVar[str] = ""

    def __init__(self, left: Formula, right: Formula) -> None:
        super().__init__((left, right))

    @property
    def left(self) -> Formula:
        return self._children[0]  # type: ignore[return-value]

    @property
    def right(self) -> Formula:
        return self._children[1]  # type: ignore[return-value]

    def with_children(self, children: Sequence[Expression]) -> _BinaryConnective:
        return type(self)(*children)

    def _format(self, parts: Sequence[str]) -> str:
        return f"({parts[0]} {self._op_symbol} {parts[1]})"


class Implies(_BinaryConnective):
    """
    Represents phi -> psi.

    Equivalent to: !phi | psi
    """

    __slots__ = ()

    name = "implies"
    _op_symbol = "->"


class Biimplies(_BinaryConnective):
    """
    Represents phi <-> psi.

    Equivalent to: (phi -> psi) & (psi -> phi)
    """

    __slots__ = ()

    name = "biimplies"
    _op_symbol = "<->"


class Quantifier(Connective):
    """
    Base class for quantifiers binding one variable over a body.

    Attributes:
        variable: The bound variable term.
        body: The quantified formula.
    """

    __slots__ = ("variable",)

    _keyword: ClassVar[str] = ""

    def __init__(self, variable: Variable, body: Formula) -> None:
        if not isinstance(variable, Variable):
            raise TypeMismatchError(
                f"{type(self).__name__} binds a Variable, got {type(variable).__name__}"
            )
        self.variable = variable
        super().__init__((body,))

    @property
    def body(self) -> Formula:
        return self._children[0]  # type: ignore[return-value]

    def _key(self) -> Tuple[Any, ...]:
        return (self.variable.index,)

    def with_children(self, children: Sequence[Expression]) -> Quantifier:
        return type(self)(self.variable.with_children(()), *children)

    def _format(self, parts: Sequence[str]) -> str:
        return f"{self._keyword} {self.variable.variable_name}. {parts[0]}"


class ForAll(Quantifier):
    """Represents forall x. phi."""

    __slots__ = ()

    name = "forall"
    _keyword = "forall"


class Exists(Quantifier):
    """Represents exists x. phi."""

    __slots__ = ()

    name = "exists"
    _keyword = "exists"


# === Literals ===


class Literal(Formula):
    """
    Base class for literals: formulas that carry their own polarity.

    Negation never wraps a literal in normal forms; it is absorbed by
    flip(), which returns the complementary literal.
    """

    __slots__ = ()

    @property
    @abstractmethod
    def positive(self) -> bool:
        """Return whether this literal is unnegated."""

    @abstractmethod
    def flip(self) -> Literal:
        """Return the complementary literal."""


class VariableLiteral(Literal):
    """
    A boolean variable or its negation.

    The polarity is the sign of *value*: +i is variable i, -i its
    negation.

    Attributes:
        value: Signed variable index (never 0).
        variable_map: The registry the index refers to.
    """

    __slots__ = ("value", "variable_map")

    name = "literal"

    def __init__(self, value: int, variable_map: VariableMap) -> None:
        if value == 0:
            raise ValueError("Literal value must be a non-zero signed index")
        signature = variable_map.require(abs(value))
        if signature.type is not bool:
            raise TypeMismatchError(
                f"Variable '{signature.name}' has type {signature.type.__name__}, not bool"
            )
        self.value = value
        self.variable_map = variable_map
        super().__init__()

    def _compute_hash(self) -> int:
        return hash(self.value)

    def _key(self) -> Tuple[Any, ...]:
        return (self.value,)

    @property
    def index(self) -> int:
        return abs(self.value)

    @property
    def positive(self) -> bool:
        return self.value > 0

    @property
    def variable_name(self) -> str:
        return self.variable_map.get_name(self.index) or "??"

    def flip(self) -> VariableLiteral:
        return VariableLiteral(-self.value, self.variable_map)

    def with_children(self, children: Sequence[Expression] = ()) -> VariableLiteral:
        return VariableLiteral(self.value, self.variable_map)

    def _format(self, parts: Sequence[str]) -> str:
        return self.variable_name if self.positive else f"!{self.variable_name}"


class TrueLiteral(Literal):
    """The constant TRUE. All instances are equal."""

    __slots__ = ()

    name = "true"

    def _compute_hash(self) -> int:
        return 91

    @property
    def positive(self) -> bool:
        return True

    def flip(self) -> FalseLiteral:
        return FalseLiteral()

    def with_children(self, children: Sequence[Expression] = ()) -> TrueLiteral:
        return TrueLiteral()

    def _format(self, parts: Sequence[str]) -> str:
        return "true"


class FalseLiteral(Literal):
    """The constant FALSE. All instances are equal."""

    __slots__ = ()

    name = "false"

    def _compute_hash(self) -> int:
        return 97

    @property
    def positive(self) -> bool:
        return True

    def flip(self) -> TrueLiteral:
        return TrueLiteral()

    def with_children(self, children: Sequence[Expression] = ()) -> FalseLiteral:
        return FalseLiteral()

    def _format(self, parts: Sequence[str]) -> str:
        return "false"


TRUE = TrueLiteral()
FALSE = FalseLiteral()


class ErrorLiteral(Literal):
    """
    Placeholder for a sub-expression that could not be parsed.

    It behaves like an opaque literal: transformations flip it and move
    it around but never look inside. It evaluates to unknown.

    Attributes:
        error: Diagnostic describing the unparsable input.
    """

    __slots__ = ("error", "_positive")

    name = "error"

    def __init__(self, error: str, positive: bool = True) -> None:
        self.error = error
        self._positive = positive
        super().__init__()

    def _key(self) -> Tuple[Any, ...]:
        return (self.error, self._positive)

    @property
    def positive(self) -> bool:
        return self._positive

    def flip(self) -> ErrorLiteral:
        return ErrorLiteral(self.error, not self._positive)

    def with_children(self, children: Sequence[Expression] = ()) -> ErrorLiteral:
        return ErrorLiteral(self.error, self._positive)

    def _format(self, parts: Sequence[str]) -> str:
        text = f"<error: {self.error}>"
        return text if self._positive else f"!{text}"


class Comparison(Literal):
    """
    Base class for binary predicates over terms.

    Attributes:
        left: Left term.
        right: Right term.
    """

    __slots__ = ("_positive",)

    child_class: ClassVar[Optional[type]] = None
    _op_symbol: ClassVar[str] = ""

    def __init__(self, left: Term, right: Term, positive: bool = True) -> None:
        self._positive = positive
        super().__init__((left, right))

    def check_child(self, child: Any) -> None:
        if not isinstance(child, Term):
            raise TypeMismatchError(
                f"{type(self).__name__} expects Term children, got {type(child).__name__}"
            )
        super().check_child(child)

    def _key(self) -> Tuple[Any, ...]:
        return (self._positive,)

    @property
    def left(self) -> Term:
        return self._children[0]  # type: ignore[return-value]

    @property
    def right(self) -> Term:
        return self._children[1]  # type: ignore[return-value]

    @property
    def positive(self) -> bool:
        return self._positive

    def flip(self) -> Comparison:
        return type(self)(*self._children, positive=not self._positive)  # type: ignore[arg-type]

    def with_children(self, children: Sequence[Expression]) -> Comparison:
        return type(self)(*children, positive=self._positive)  # type: ignore[arg-type]

    @abstractmethod
    def compare(self, left: Any, right: Any) -> bool:
        """Apply the predicate to evaluated operands."""

    def _format(self, parts: Sequence[str]) -> str:
        text = f"({parts[0]} {self._op_symbol} {parts[1]})"
        return text if self._positive else f"!{text}"


class Equals(Comparison):
    """Represents t1 = t2."""

    __slots__ = ()

    name = "equals"
    _op_symbol = "="

    def compare(self, left: Any, right: Any) -> bool:
        return left == right


class LessThan(Comparison):
    """Represents t1 < t2 over numeric terms."""

    __slots__ = ()

    name = "less-than"
    children_type = (int, float)
    _op_symbol = "<"

    def compare(self, left: Any, right: Any) -> bool:
        return left < right


class GreaterThan(Comparison):
    """Represents t1 > t2 over numeric terms."""

    __slots__ = ()

    name = "greater-than"
    children_type = (int, float)
    _op_symbol = ">"

    def compare(self, left: Any, right: Any) -> bool:
        return left > right


# === Terms ===


class Term(Expression):
    """Base class for non-boolean-valued expressions."""

    __slots__ = ()


class Variable(Term):
    """
    A variable term, typed by its registry entry.

    Attributes:
        index: Index of the variable in *variable_map*.
        variable_map: The registry the index refers to.
    """

    __slots__ = ("index", "variable_map", "_type")

    name = "variable"

    def __init__(self, index: int, variable_map: VariableMap) -> None:
        self._type = variable_map.require(index).type
        self.index = index
        self.variable_map = variable_map
        super().__init__()

    def _key(self) -> Tuple[Any, ...]:
        return (self.index,)

    @property
    def type(self) -> type:
        return self._type

    @property
    def variable_name(self) -> str:
        return self.variable_map.get_name(self.index) or "??"

    def with_children(self, children: Sequence[Expression] = ()) -> Variable:
        return Variable(self.index, self.variable_map)

    def _format(self, parts: Sequence[str]) -> str:
        return self.variable_name


class Constant(Term):
    """
    A constant term whose value is fixed in the registry.

    Attributes:
        index: Index of the constant in *variable_map*.
        variable_map: The registry the index refers to.
    """

    __slots__ = ("index", "variable_map", "_type")

    name = "constant"

    def __init__(self, index: int, variable_map: VariableMap) -> None:
        self._type = variable_map.require_constant(index).type
        self.index = index
        self.variable_map = variable_map
        super().__init__()

    def _key(self) -> Tuple[Any, ...]:
        return (self.index,)

    @property
    def type(self) -> type:
        return self._type

    @property
    def value(self) -> Any:
        return self.variable_map.require_constant(self.index).value

    def with_children(self, children: Sequence[Expression] = ()) -> Constant:
        return Constant(self.index, self.variable_map)

    def _format(self, parts: Sequence[str]) -> str:
        return str(self.value)


class Function(Term):
    """Base class for functions over terms."""

    __slots__ = ()

    child_class = Term

    def __init__(self, *arguments: Term) -> None:
        super().__init__(arguments)

    def with_children(self, children: Sequence[Expression]) -> Function:
        return type(self)(*children)  # type: ignore[arg-type]

    @abstractmethod
    def apply(self, values: Sequence[Any]) -> Any:
        """Apply the function to fully known argument values."""


class _Add(Function):
    """Sum of the arguments, folded left to right."""

    __slots__ = ()

    def apply(self, values: Sequence[Any]) -> Any:
        total = self.type()
        for value in values:
            total = total + value
        return total

    def _format(self, parts: Sequence[str]) -> str:
        return f"({' + '.join(parts)})"


class IntegerAdd(_Add):
    """Adds integer terms."""

    __slots__ = ()

    name = "integer-add"
    children_type = int

    @property
    def type(self) -> type:
        return int


class RealAdd(_Add):
    """Adds real-valued terms."""

    __slots__ = ()

    name = "real-add"
    children_type = float

    @property
    def type(self) -> type:
        return float
