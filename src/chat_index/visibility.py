"""Collapse-aware projection of a depth-annotated unit run.

Collapse state is owned by the caller and passed in fresh on every call;
nothing here keeps it between calls.
"""
from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import Any

from chat_index.unit_types import Section, Unit


def project(units: Sequence[Unit], collapsed: Collection[str]) -> list[Unit]:
    """Units to display given a set of collapsed unit ids.

    Single pass with a "skip until depth" cursor. A collapsed unit is
    itself shown; everything strictly deeper that follows it is hidden
    until a unit at the same depth or shallower appears. Collapsed units
    inside an already hidden run have no effect of their own.

    With an empty collapsed set the input comes back unchanged.
    """
    visible: list[Unit] = []
    skip_deeper_than: int | None = None

    for unit in units:
        if skip_deeper_than is not None and unit.depth > skip_deeper_than:
            continue
        skip_deeper_than = None
        visible.append(unit)
        if unit.id in collapsed:
            skip_deeper_than = unit.depth

    return visible


def has_descendants(units: Sequence[Unit], index: int) -> bool:
    """Whether ``units[index]`` owns a non-empty run of deeper units.

    Descendants are contiguous, so only the next unit needs checking.
    Out-of-range indexes report False.
    """
    if index < 0 or index + 1 >= len(units):
        return False
    return units[index + 1].depth > units[index].depth


def matches_query(unit: Unit, query: str) -> bool:
    return query.lower() in unit.text.lower()


def filter_sections(
    sections: Sequence[Section],
    query: str = "",
    collapsed: Collection[str] = frozenset(),
) -> list[Section]:
    """Search + collapse view over *sections*.

    A non-empty query keeps the units whose text contains it
    (case-insensitive) and ignores collapse state, so every match is
    visible. An empty query applies :func:`project` per section. Sections
    survive when they keep any unit or their title matches the query.
    """
    query = query.strip()
    out: list[Section] = []
    for section in sections:
        if query:
            kept = [u for u in section.units if matches_query(u, query)]
        else:
            kept = project(section.units, collapsed)
        if kept or (query and query.lower() in section.title.lower()):
            out.append(Section(id=section.id, title=section.title, units=tuple(kept)))
    return out


def outline_view(
    sections: Sequence[Section],
    query: str = "",
    collapsed: Collection[str] = frozenset(),
) -> list[dict[str, Any]]:
    """Render-ready rows for the outline viewer.

    Each row carries ``has_children`` (judged on the full section, so a
    collapsed unit keeps its toggle) and ``collapsed``.
    """
    expandable = {
        unit.id
        for section in sections
        for i, unit in enumerate(section.units)
        if has_descendants(section.units, i)
    }
    return [
        {
            "id": section.id,
            "title": section.title,
            "units": [
                {
                    "id": u.id,
                    "role": u.role,
                    "text": u.text,
                    "unit_type": u.unit_type,
                    "heading_level": u.heading_level,
                    "language": u.language,
                    "depth": u.depth,
                    "has_children": u.id in expandable,
                    "collapsed": u.id in collapsed,
                }
                for u in section.units
            ],
        }
        for section in filter_sections(sections, query, collapsed)
    ]
