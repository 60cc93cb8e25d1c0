"""Depth reconstruction from a flat run of units.

Rebuilds nesting from heading levels that may skip, repeat, or arrive out
of order, in one linear pass with an explicit stack of
``(level, unit)`` pairs:

    - heading at level L: pop while top.level >= L, depth = stack size,
      push (L, unit). Equal levels are siblings; only a strictly deeper
      level nests.
    - any other unit: depth = stack size (nests under the most recent
      open heading, or 0 when none is open).

Example: H1, H3, H2 gives depths 0, 1, 1 (H2 pops H3, stops at H1).

Pure function; no I/O, no mutation of the input units.
"""
from __future__ import annotations

from collections.abc import Iterable

from chat_index.unit_types import Unit


def assign_depths(units: Iterable[Unit]) -> list[Unit]:
    """Return copies of *units* in the same order, each with its depth set."""
    stack: list[tuple[int, Unit]] = []
    out: list[Unit] = []

    for unit in units:
        if unit.is_heading:
            level = unit.heading_level or 1
            while stack and stack[-1][0] >= level:
                stack.pop()
            placed = unit.with_depth(len(stack))
            stack.append((level, placed))
        else:
            placed = unit.with_depth(len(stack))
        out.append(placed)

    return out

