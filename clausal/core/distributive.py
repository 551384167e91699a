"""
Distributive-law conversion of NNF formulas into clausal CNF or DNF.

The walk is post-order over an explicit path of frames. A node of the
clause connective (Or for CNF, And for DNF) that has a non-literal child
is expanded: the Cartesian product of its children's clause sets gives
one candidate clause per combination. While a candidate is built,
repeated literals are added once and a candidate meeting the complement
of one of its literals is dropped. The surviving candidates are sorted
by size and every candidate containing a smaller one is discarded
before the node is replaced by the remaining clauses.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Type

from clausal.core.nnf import flatten
from clausal.core.testers import NormalForm, is_normal_form
from clausal.core.traversal import iter_preorder, reduce
from clausal.errors import NormalFormViolationError
from clausal.structure.nodes import (
    And,
    Connective,
    Expression,
    Formula,
    Literal,
    Not,
    Or,
    Quantifier,
    Term,
)
from clausal.utils.logger import SILENT, TransformLogger

Clause = Tuple[Literal, ...]


class _PathElement:
    """A node on the current path together with its rewritten children."""

    __slots__ = ("node", "position", "new_children", "max_depth")

    def __init__(self, node: Expression) -> None:
        self.node = node
        self.position = 0
        self.new_children: List[Expression] = []
        # 0 while every child seen so far is a literal.
        self.max_depth = 0


class _Choice:
    """One factor of a Cartesian expansion and the literals it added."""

    __slots__ = ("index", "options", "position", "added")

    def __init__(self, index: int, options: List[Clause]) -> None:
        self.index = index
        self.options = options
        self.position = 0
        self.added: Clause = ()


class DistributiveLawTransformer:
    """
    Converts NNF formulas into CNF or DNF by the distributive law.

    Attributes:
        normal_form: Either NormalForm.CNF or NormalForm.DNF.
        strict: Produce the exact two-level shape (every clause wrapped,
            even single literals) instead of the shallowest clausal form.
        max_clauses: Abort when one expansion yields more candidate
            clauses than this.
        statistics: Counters of the last transform() call.
    """

    def __init__(
        self,
        normal_form: NormalForm,
        strict: bool = False,
        max_clauses: Optional[int] = None,
        logger: Optional[TransformLogger] = None,
    ) -> None:
        if normal_form is NormalForm.CNF:
            self._clause_class: Type[Connective] = Or
            self._outer_class: Type[Connective] = And
        elif normal_form is NormalForm.DNF:
            self._clause_class = And
            self._outer_class = Or
        else:
            raise ValueError(f"Distributive law targets CNF or DNF, not {normal_form.name}")
        self.normal_form = normal_form
        self.strict = strict
        self.max_clauses = max_clauses
        self.logger = logger or SILENT
        self.statistics: Dict[str, int] = {}

    def transform(self, formula: Formula) -> Formula:
        """
        Convert an NNF formula.

        Args:
            formula: A formula in (non-strict) negation normal form.

        Returns:
            An equivalent formula in the target normal form. The input
            is not modified and shares no nodes with the result.

        Raises:
            NormalFormViolationError: If the input is not quantifier-free
                NNF, the clause limit is exceeded, or the result fails
                the target shape check.
        """
        self.statistics = {
            "expansions": 0,
            "candidate_clauses": 0,
            "complementary_pruned": 0,
            "subsumed_removed": 0,
        }
        prepared = self._prepare(formula)
        root = prepared if isinstance(prepared, self._outer_class) else self._outer_class(prepared)

        children = self._distribute(root)
        result = self._assemble(children)

        if not is_normal_form(result, self.normal_form, self.strict):
            raise NormalFormViolationError(
                f"Conversion did not produce {'strict ' if self.strict else ''}"
                f"{self.normal_form.name}: {result}"
            )
        self.logger.info(f"{self.normal_form.name} conversion complete", **self.statistics)
        return result

    def _prepare(self, formula: Formula) -> Expression:
        """Copy the input, flattening nested connectives and absorbing Not into literals."""
        for node in iter_preorder(formula):
            if isinstance(node, Quantifier):
                raise NormalFormViolationError(
                    f"Cannot convert quantified formula to {self.normal_form.name} "
                    "without quantifier elimination"
                )
            if isinstance(node, (Literal, Term)):
                continue
            if isinstance(node, Not) and isinstance(node.operand, Literal):
                continue
            if not isinstance(node, (And, Or)):
                raise NormalFormViolationError(
                    f"Input is not in negation normal form: found {type(node).__name__}"
                )

        def absorb(node: Expression, children: List[Expression]) -> Expression:
            if isinstance(node, Not):
                return children[0].flip()  # type: ignore[attr-defined]
            if isinstance(node, Literal):
                return node.with_children(children)
            return flatten(node, children)

        return reduce(formula, absorb)

    def _distribute(self, root: Expression) -> List[Expression]:
        """Run the post-order expansion; return the rewritten children of *root*."""
        path = [_PathElement(root)]
        while True:
            element = path[-1]
            children = element.node.children
            if element.position < len(children):
                child = children[element.position]
                element.position += 1
                if isinstance(child, Literal):
                    element.new_children.append(child)
                else:
                    path.append(_PathElement(child))
                continue

            path.pop()
            if not path:
                return element.new_children

            parent = path[-1]
            parent.max_depth = max(parent.max_depth, element.max_depth + 1)
            if type(element.node) is self._clause_class and element.max_depth > 0:
                parent.new_children.extend(self._convert(element.new_children))
            else:
                parent.new_children.append(element.node.with_children(element.new_children))

    def _convert(self, children: Sequence[Expression]) -> List[Formula]:
        """Expand one clause-class node whose children are already converted."""
        self.statistics["expansions"] += 1
        factors = [_options(child) for child in children]
        factors.sort(key=len)

        candidates = self._expand(factors)
        candidates.sort(key=len)
        survivors = eliminate_subsumed(candidates)
        self.statistics["subsumed_removed"] += len(candidates) - len(survivors)

        self.logger.debug(
            f"Expanded {self._clause_class.__name__} node",
            factors=len(factors),
            candidates=len(candidates),
            clauses=len(survivors),
        )
        return [
            self._clause_class(*(literal.with_children(()) for literal in clause))
            for clause in survivors
        ]

    def _expand(self, factors: List[List[Clause]]) -> List[Clause]:
        """Enumerate the Cartesian product of *factors* as literal tuples."""
        if not factors:
            return [()]

        complements: Dict[Literal, Literal] = {}

        def complement(literal: Literal) -> Literal:
            flipped = complements.get(literal)
            if flipped is None:
                flipped = literal.flip()
                complements[literal] = flipped
            return flipped

        # Ordered set of the literals in the candidate under construction.
        literals: Dict[Literal, None] = {}
        candidates: List[Clause] = []

        def choices(index: int) -> List[Clause]:
            options = factors[index]
            if any(all(lit in literals for lit in option) for option in options):
                # Some option adds nothing; every other option only
                # produces supersets, which subsumption would remove.
                return [()]
            result: List[Clause] = []
            for option in options:
                if any(
                    complement(lit) in literals or complement(lit) in option
                    for lit in option
                ):
                    self.statistics["complementary_pruned"] += 1
                    continue
                # Inner clauses may repeat a literal; add each one once.
                result.append(tuple(dict.fromkeys(lit for lit in option if lit not in literals)))
            return result

        stack = [_Choice(0, choices(0))]
        while stack:
            frame = stack[-1]
            for lit in frame.added:
                del literals[lit]
            frame.added = ()
            if frame.position == len(frame.options):
                stack.pop()
                continue

            added = frame.options[frame.position]
            frame.position += 1
            for lit in added:
                literals[lit] = None
            frame.added = added

            if frame.index + 1 < len(factors):
                stack.append(_Choice(frame.index + 1, choices(frame.index + 1)))
                continue

            candidates.append(tuple(literals))
            self.statistics["candidate_clauses"] += 1
            if self.max_clauses is not None and len(candidates) > self.max_clauses:
                raise NormalFormViolationError(
                    f"{self.normal_form.name} expansion exceeded {self.max_clauses} clauses"
                )
        return candidates

    def _assemble(self, children: List[Expression]) -> Formula:
        """Wrap the top-level clauses into the final formula."""
        if self.strict:
            clauses = [
                self._clause_class(child) if isinstance(child, Literal) else child
                for child in children
            ]
            return self._outer_class(*clauses)
        if len(children) == 1:
            return children[0]  # type: ignore[return-value]
        return self._outer_class(*children)


def _options(child: Expression) -> List[Clause]:
    """
    Return the alternatives a child contributes to an expansion.

    A literal has one alternative. A node of the opposite connective
    offers each of its children, either a literal or a clause of literals.
    """
    if isinstance(child, Literal):
        return [(child,)]
    options: List[Clause] = []
    for grandchild in child.children:
        if isinstance(grandchild, Literal):
            options.append((grandchild,))
        else:
            options.append(tuple(grandchild.children))  # type: ignore[arg-type]
    return options


def eliminate_subsumed(clauses: Sequence[Clause]) -> List[Clause]:
    """
    Remove every clause whose literal set contains another clause's set.

    Of two clauses with equal literal sets the first one is kept. The
    order of the survivors follows *clauses*.

    Args:
        clauses: Literal tuples, ideally sorted by size ascending.

    Returns:
        The clauses not subsumed by any other.
    """
    sets = [frozenset(clause) for clause in clauses]
    order = sorted(range(len(sets)), key=lambda i: len(sets[i]))
    occurrences: Dict[Literal, List[int]] = {}
    for i, literal_set in enumerate(sets):
        for literal in literal_set:
            occurrences.setdefault(literal, []).append(i)

    removed = [False] * len(sets)
    for i in order:
        if removed[i]:
            continue
        literal_set = sets[i]
        if not literal_set:
            for j in range(len(sets)):
                if j != i:
                    removed[j] = True
            break
        # Every superset of this clause contains its rarest literal.
        pivot = min(literal_set, key=lambda lit: len(occurrences[lit]))
        for j in occurrences[pivot]:
            if j != i and not removed[j] and literal_set <= sets[j]:
                removed[j] = True

    return [clause for clause, gone in zip(clauses, removed) if not gone]
