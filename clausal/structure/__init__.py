"""
Formula data model for CLAUSAL.

Contains the immutable expression tree nodes and the variable registry
that maps variable names to stable integer indices.
"""
