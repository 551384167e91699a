"""
Textual formula parser for CLAUSAL.

Provides lexical analysis and parsing of propositional constraint
files into expression trees, plus helpers for working with parsed
formulas.
"""
