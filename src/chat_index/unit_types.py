"""Core types for the chat outline pipeline.

Every stage shares these types. All dataclasses are frozen and use
slots=True; a re-extraction pass produces a fresh snapshot instead of
mutating the previous one.

Type hierarchy:
  UnitDescriptor Classifier output for one content node (no id yet)
  Unit           Indexed piece of content (heading, code, text)
  Message        One conversational turn, an ordered run of Units
  Section        Titled group of Units bounded by level-1 headings
  Highlight      User highlight record (owned by the highlight feature)
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from bs4.element import Tag

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

type Role = Literal["author", "assistant"]
type UnitType = Literal["plain-text", "heading", "code", "list"]

ROLE_AUTHOR: Role = "author"
ROLE_ASSISTANT: Role = "assistant"

UNIT_TEXT: UnitType = "plain-text"
UNIT_HEADING: UnitType = "heading"
UNIT_CODE: UnitType = "code"
UNIT_LIST: UnitType = "list"  # reserved; no strategy emits it yet

_ROLES = frozenset({ROLE_AUTHOR, ROLE_ASSISTANT})
_UNIT_TYPES = frozenset({UNIT_TEXT, UNIT_HEADING, UNIT_CODE, UNIT_LIST})


def _check_shape(
    unit_type: str,
    heading_level: int | None,
    language: str | None,
) -> None:
    if unit_type not in _UNIT_TYPES:
        raise ValueError(f"unknown unit_type: {unit_type!r}")
    if unit_type == UNIT_HEADING:
        if heading_level is None or not 1 <= heading_level <= 6:
            raise ValueError(
                f"heading units need heading_level in 1..6, got {heading_level!r}"
            )
    elif heading_level is not None:
        raise ValueError(
            f"heading_level is only valid on heading units, got {unit_type!r}"
        )
    if language is not None and unit_type != UNIT_CODE:
        raise ValueError(f"language is only valid on code units, got {unit_type!r}")


# ---------------------------------------------------------------------------
# UnitDescriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnitDescriptor:
    """Compact classification of a single content node."""

    unit_type: UnitType
    text: str
    heading_level: int | None = None
    language: str | None = None

    def __post_init__(self) -> None:
        _check_shape(self.unit_type, self.heading_level, self.language)


# ---------------------------------------------------------------------------
# Unit
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Unit:
    """Smallest indexed piece of a conversation.

    ``source`` is a non-owning reference to the node the unit was read
    from. It is used for "jump to" lookups only: it never takes part in
    equality and is dropped on serialization.

    Invariants (enforced in __post_init__):
        - heading_level is set iff unit_type == "heading"
        - language is only set on code units
        - depth >= 0
    """

    id: str
    role: Role
    text: str
    unit_type: UnitType = UNIT_TEXT
    heading_level: int | None = None
    language: str | None = None
    depth: int = 0
    source: Tag | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"unknown role: {self.role!r}")
        _check_shape(self.unit_type, self.heading_level, self.language)
        if self.depth < 0:
            raise ValueError(f"depth must be >= 0, got {self.depth}")

    @classmethod
    def from_descriptor(
        cls,
        unit_id: str,
        role: Role,
        descriptor: UnitDescriptor,
        *,
        source: Tag | None = None,
    ) -> Unit:
        return cls(
            id=unit_id,
            role=role,
            text=descriptor.text,
            unit_type=descriptor.unit_type,
            heading_level=descriptor.heading_level,
            language=descriptor.language,
            source=source,
        )

    @property
    def is_heading(self) -> bool:
        return self.unit_type == UNIT_HEADING

    @property
    def is_top_heading(self) -> bool:
        """True for level-1 headings, the only units that open a Section."""
        return self.unit_type == UNIT_HEADING and self.heading_level == 1

    def with_depth(self, depth: int) -> Unit:
        return replace(self, depth=depth)


# ---------------------------------------------------------------------------
# Message / Section
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Message:
    """One conversational turn as produced by a single strategy invocation.

    ``index`` is the message's position in the conversation; section ids
    are derived from it.
    """

    id: str
    index: int
    role: Role
    units: tuple[Unit, ...]


@dataclass(frozen=True, slots=True)
class Section:
    """A titled run of Units. Sections partition a conversation's units."""

    id: str
    title: str
    units: tuple[Unit, ...]

    def __len__(self) -> int:
        return len(self.units)


# ---------------------------------------------------------------------------
# Highlight
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Highlight:
    """A saved text highlight.

    Owned by the highlight feature; the outline pipeline only carries the
    type so both features agree on one record shape in storage.
    """

    id: str
    text: str
    pre: str
    post: str
    color: str
    created_at: float
    location_key: str
