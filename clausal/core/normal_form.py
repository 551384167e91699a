"""
Entry points for normal form conversion.

to_nnf(), to_cnf() and to_dnf() take any formula and return a new,
equivalent formula in the requested form. convert() additionally
reports conversion statistics.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from clausal.core.distributive import DistributiveLawTransformer
from clausal.core.nnf import to_nnf
from clausal.core.testers import (
    NormalForm,
    is_cnf,
    is_dnf,
    is_nnf,
    is_normal_form,
)
from clausal.core.traversal import clone, size
from clausal.errors import TypeMismatchError
from clausal.structure.nodes import And, Formula, Or
from clausal.utils.logger import SILENT, TransformLogger

__all__ = [
    "ConversionResult",
    "NormalForm",
    "convert",
    "is_cnf",
    "is_dnf",
    "is_nnf",
    "is_normal_form",
    "to_cnf",
    "to_dnf",
    "to_nnf",
    "to_normal_form",
]


@dataclass
class ConversionResult:
    """
    Output of a conversion together with its statistics.

    Attributes:
        formula: The converted formula.
        normal_form: The form that was requested.
        strict: Whether the strict shape was requested.
        statistics: Node counts, timing and distributive-law counters.
    """

    formula: Formula
    normal_form: NormalForm
    strict: bool
    statistics: Dict[str, Any] = field(default_factory=dict)


def convert(
    formula: Formula,
    normal_form: Union[NormalForm, str],
    strict: bool = False,
    max_clauses: Optional[int] = None,
    logger: Optional[TransformLogger] = None,
) -> ConversionResult:
    """
    Convert a formula to a normal form.

    A formula that already has the requested shape is returned as a
    structurally equal copy. Otherwise it is brought into NNF and, for
    CNF and DNF, expanded by the distributive law.

    Args:
        formula: The formula to convert. It is never modified.
        normal_form: Target form, a NormalForm or its name ("cnf").
        strict: Request the exact canonical nesting.
        max_clauses: Limit on the clauses one expansion may produce.
        logger: Optional logger for progress output.

    Returns:
        A ConversionResult holding the new formula.

    Raises:
        NormalFormViolationError: If the formula is quantified (CNF/DNF
            only) or *max_clauses* is exceeded.
        TypeMismatchError: If *formula* is not boolean-valued.
    """
    logger = logger or SILENT
    if not isinstance(formula, Formula):
        raise TypeMismatchError(f"Expected a formula, got {type(formula).__name__}")
    if isinstance(normal_form, str):
        normal_form = NormalForm(normal_form.lower())

    start = time.perf_counter()
    statistics: Dict[str, Any] = {"input_nodes": size(formula)}

    if is_normal_form(formula, normal_form, strict):
        logger.info(f"Formula is already in {normal_form.name}")
        result: Formula = clone(formula)  # type: ignore[assignment]
    else:
        result = to_nnf(formula, logger)
        if normal_form is not NormalForm.NNF and not is_normal_form(
            result, normal_form, strict
        ):
            transformer = DistributiveLawTransformer(
                normal_form, strict=strict, max_clauses=max_clauses, logger=logger
            )
            result = transformer.transform(result)
            statistics.update(transformer.statistics)

    statistics["output_nodes"] = size(result)
    if normal_form is not NormalForm.NNF:
        outer = result.children if _is_top_level_list(result, normal_form) else (result,)
        statistics["clauses"] = len(outer)
    statistics["elapsed_seconds"] = round(time.perf_counter() - start, 6)
    return ConversionResult(result, normal_form, strict, statistics)


def _is_top_level_list(formula: Formula, normal_form: NormalForm) -> bool:
    outer = And if normal_form is NormalForm.CNF else Or
    return isinstance(formula, outer)


def to_normal_form(
    formula: Formula,
    normal_form: Union[NormalForm, str],
    strict: bool = False,
    max_clauses: Optional[int] = None,
    logger: Optional[TransformLogger] = None,
) -> Formula:
    """Convert a formula to *normal_form* and return only the formula."""
    return convert(formula, normal_form, strict, max_clauses, logger).formula


def to_cnf(
    formula: Formula,
    strict: bool = False,
    max_clauses: Optional[int] = None,
    logger: Optional[TransformLogger] = None,
) -> Formula:
    """Convert a formula to conjunctive normal form."""
    return to_normal_form(formula, NormalForm.CNF, strict, max_clauses, logger)


def to_dnf(
    formula: Formula,
    strict: bool = False,
    max_clauses: Optional[int] = None,
    logger: Optional[TransformLogger] = None,
) -> Formula:
    """Convert a formula to disjunctive normal form."""
    return to_normal_form(formula, NormalForm.DNF, strict, max_clauses, logger)
