"""
Normal form transformation engine for CLAUSAL.

Contains tree traversal, normal form predicates, negation normal form
conversion, the distributive-law CNF/DNF converter, evaluation and the
clause-list encoding consumed by satisfiability backends.
"""
