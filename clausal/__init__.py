"""
CLAUSAL: normal form conversion for logic formulas.

Represents propositional and first-order formulas as immutable trees
and converts them into negation, conjunctive and disjunctive normal
form for satisfiability backends used in feature-model analysis.
"""

__version__ = "0.1.0"
