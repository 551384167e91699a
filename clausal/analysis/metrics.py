"""Distance functions over solutions given as signed literal arrays."""

from __future__ import annotations

from typing import Sequence


def hamming_distance(first: Sequence[int], second: Sequence[int]) -> float:
    """
    Return the fraction of positions at which two literal arrays differ.

    Args:
        first: A full assignment as signed literals, one per variable.
        second: Another assignment of the same width.

    Raises:
        ValueError: If the arrays are empty or differ in length.
    """
    if len(first) != len(second):
        raise ValueError(
            f"Cannot compare assignments of width {len(first)} and {len(second)}"
        )
    if not first:
        raise ValueError("Cannot compare empty assignments")
    conflicts = sum(1 for a, b in zip(first, second) if a != b)
    return conflicts / len(first)
