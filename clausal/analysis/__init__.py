"""
Satisfiability backends and solution metrics.

Contains the solver interface used by analysis code, a solver
backend over python-sat, and distance functions over solutions.
"""
