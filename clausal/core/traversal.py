"""
Iterative tree traversal for expression trees.

Formula trees taken from real feature models can be thousands of
levels deep, so every walk here keeps its own work-stack instead of
recursing. Provides pre-order and post-order iteration, bottom-up
reduction, top-down rewriting, structural equality and cloning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Set, TypeVar

if TYPE_CHECKING:
    from clausal.structure.nodes import Expression

T = TypeVar("T")


class _Frame:
    """One entry of the explicit traversal stack."""

    __slots__ = ("node", "position", "values")

    def __init__(self, node: Expression) -> None:
        self.node = node
        self.position = 0
        self.values: List[Any] = []


def iter_preorder(node: Expression) -> Iterator[Expression]:
    """Yield every node, parents before children, children left to right."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_postorder(node: Expression) -> Iterator[Expression]:
    """Yield every node, children (left to right) before parents."""
    stack = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        if expanded or not current.children:
            yield current
        else:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(current.children))


def reduce(
    node: Expression,
    fn: Callable[[Expression, List[T]], T],
    validate: bool = False,
) -> T:
    """
    Reduce a tree bottom-up.

    Args:
        node: Root of the tree.
        fn: Called once per node with the node and the already reduced
            values of its children, in order.
        validate: Check each child against its parent's type constraint
            before descending into it.

    Returns:
        The value computed for the root.

    Raises:
        TypeMismatchError: If *validate* is set and a child violates its
            parent's type constraint.
    """
    stack = [_Frame(node)]
    while True:
        frame = stack[-1]
        children = frame.node.children
        if frame.position < len(children):
            child = children[frame.position]
            frame.position += 1
            if validate:
                frame.node.check_child(child)
            stack.append(_Frame(child))
            continue
        stack.pop()
        value = fn(frame.node, frame.values)
        if not stack:
            return value
        stack[-1].values.append(value)


def rewrite(
    node: Expression,
    fn: Callable[[Expression], Optional[Expression]],
) -> Expression:
    """
    Rewrite a tree top-down.

    Before a node is descended into, *fn* is applied to it repeatedly
    until it returns None; each non-None result replaces the node. The
    children of the final replacement are then rewritten the same way
    and the tree is rebuilt bottom-up from fresh nodes.

    Args:
        node: Root of the tree.
        fn: Returns a replacement for a node, or None to keep it.

    Returns:
        A new tree. The input is not modified.
    """
    stack = [_Frame(_settle(node, fn))]
    while True:
        frame = stack[-1]
        children = frame.node.children
        if frame.position < len(children):
            child = children[frame.position]
            frame.position += 1
            stack.append(_Frame(_settle(child, fn)))
            continue
        stack.pop()
        rebuilt = frame.node.with_children(frame.values)
        if not stack:
            return rebuilt
        stack[-1].values.append(rebuilt)


def _settle(
    node: Expression,
    fn: Callable[[Expression], Optional[Expression]],
) -> Expression:
    replacement = fn(node)
    while replacement is not None:
        node = replacement
        replacement = fn(node)
    return node


def clone(node: Expression) -> Expression:
    """Return a deep copy of a tree; no node is shared with the input."""
    return reduce(node, lambda n, values: n.with_children(values))


def equals(a: Expression, b: Expression) -> bool:
    """Return whether two trees are structurally equal."""
    stack = [(a, b)]
    while stack:
        x, y = stack.pop()
        if x is y:
            continue
        if (
            type(x) is not type(y)
            or x._hash != y._hash
            or x._key() != y._key()
            or len(x.children) != len(y.children)
        ):
            return False
        stack.extend(zip(x.children, y.children))
    return True


def to_string(node: Expression) -> str:
    """Render a tree as text."""
    return reduce(node, lambda n, parts: n._format(parts))


def depth(node: Expression) -> int:
    """Return the number of levels in a tree (a leaf has depth 1)."""
    return reduce(node, lambda n, depths: 1 + max(depths, default=0))


def size(node: Expression) -> int:
    """Return the number of nodes in a tree."""
    return sum(1 for _ in iter_preorder(node))


def validate(node: Expression) -> None:
    """
    Check every parent/child type constraint in a tree.

    Raises:
        TypeMismatchError: On the first violation found.
    """
    reduce(node, lambda n, values: None, validate=True)


def variable_indices(node: Expression) -> Set[int]:
    """Return the indices of all variables referenced in a tree."""
    from clausal.structure.nodes import Quantifier, Variable, VariableLiteral

    indices: Set[int] = set()
    for current in iter_preorder(node):
        if isinstance(current, VariableLiteral):
            indices.add(current.index)
        elif isinstance(current, Variable):
            indices.add(current.index)
        elif isinstance(current, Quantifier):
            indices.add(current.variable.index)
    return indices
