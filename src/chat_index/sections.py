"""Section partitioning of a conversation's unit stream.

The stream starts in one implicit section (``default``, titled
"Conversation"). Every level-1 heading closes the current section and
opens a new one titled with the heading text, starting at that heading.
Sections left empty after the pass are dropped, so two back-to-back
level-1 headings never leave an empty section behind. No unit appears in
more than one section and unit order is never changed.

Section ids come from the originating message position:
``section-<message index>``, with a ``-<n>`` suffix for the second and
later sections opened by the same message.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from chat_index.unit_types import Message, Section, Unit

DEFAULT_SECTION_ID = "default"
DEFAULT_SECTION_TITLE = "Conversation"


def partition(
    units: Sequence[Unit],
    *,
    origins: Sequence[int] | None = None,
    default_title: str = DEFAULT_SECTION_TITLE,
) -> list[Section]:
    """Split *units* into titled sections at level-1 heading boundaries.

    Args:
        units: All units of the conversation in document order.
        origins: Message index for each unit (same length as *units*).
            Defaults to each unit's own position.
        default_title: Title of the implicit leading section.

    Returns:
        Non-empty sections in opening order.
    """
    if origins is not None and len(origins) != len(units):
        raise ValueError(
            f"origins length ({len(origins)}) must match units ({len(units)})"
        )

    opened: list[tuple[str, str, list[Unit]]] = [(DEFAULT_SECTION_ID, default_title, [])]
    opened_per_origin: dict[int, int] = {}

    for i, unit in enumerate(units):
        if unit.is_top_heading:
            origin = origins[i] if origins is not None else i
            n = opened_per_origin.get(origin, 0)
            opened_per_origin[origin] = n + 1
            section_id = f"section-{origin}" if n == 0 else f"section-{origin}-{n}"
            opened.append((section_id, unit.text, []))
        opened[-1][2].append(unit)

    return [
        Section(id=section_id, title=title, units=tuple(members))
        for section_id, title, members in opened
        if members
    ]


def partition_messages(
    messages: Iterable[Message],
    *,
    default_title: str = DEFAULT_SECTION_TITLE,
) -> list[Section]:
    """Flatten *messages* into one stream and partition it."""
    units: list[Unit] = []
    origins: list[int] = []
    for message in messages:
        units.extend(message.units)
        origins.extend([message.index] * len(message.units))
    return partition(units, origins=origins, default_title=default_title)


def all_units(sections: Iterable[Section]) -> list[Unit]:
    """Concatenate section units back into the conversation stream."""
    return [unit for section in sections for unit in section.units]
