"""Outline serialization at the core boundary.

Sections leave the core as plain dicts: source-node references are
dropped and text fields are cut to ``sink_text_chars`` (plus ``...``) to
bound storage size. A sink is any callable taking that payload.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from chat_index.classifier import truncate
from chat_index.config import DEFAULT_CONFIG, IndexerConfig
from chat_index.io_utils import load_json, save_json
from chat_index.unit_types import Section, Unit

log = logging.getLogger(__name__)

type OutlinePayload = list[dict[str, Any]]
type OutlineSink = Callable[[OutlinePayload], None]


def serialize_unit(unit: Unit, *, config: IndexerConfig = DEFAULT_CONFIG) -> dict[str, Any]:
    return {
        "id": unit.id,
        "role": unit.role,
        "text": truncate(unit.text, config.sink_text_chars),
        "unit_type": unit.unit_type,
        "heading_level": unit.heading_level,
        "language": unit.language,
        "depth": unit.depth,
    }


def serialize_sections(
    sections: Sequence[Section],
    *,
    config: IndexerConfig = DEFAULT_CONFIG,
) -> OutlinePayload:
    return [
        {
            "id": section.id,
            "title": section.title,
            "units": [serialize_unit(u, config=config) for u in section.units],
        }
        for section in sections
    ]


def _deserialize_unit(raw: dict[str, Any]) -> Unit:
    try:
        return Unit(
            id=str(raw["id"]),
            role=raw.get("role", "assistant"),
            text=str(raw.get("text") or ""),
            unit_type=raw.get("unit_type", "plain-text"),
            heading_level=raw.get("heading_level"),
            language=raw.get("language"),
            depth=int(raw.get("depth") or 0),
        )
    except TypeError as e:
        raise ValueError(f"Malformed unit {raw.get('id')!r}: {e}") from e


def deserialize_sections(payload: Any) -> list[Section]:
    """Rebuild Sections from a stored payload (no source references).

    Entries that are not objects, and units without an ``id``, are
    skipped. Any other malformed unit raises ``ValueError``.
    """
    if not isinstance(payload, list):
        return []
    sections: list[Section] = []
    for raw in payload:
        if not isinstance(raw, dict):
            continue
        units = tuple(
            _deserialize_unit(u)
            for u in raw.get("units") or []
            if isinstance(u, dict) and u.get("id") is not None
        )
        sections.append(Section(id=str(raw.get("id", "")), title=str(raw.get("title", "")), units=units))
    return sections


class JsonFileSink:
    """Writes each outline snapshot to one JSON file, replacing the last."""

    def __init__(self, path: Path, *, pretty: bool = True) -> None:
        self.path = path
        self.pretty = pretty

    def __call__(self, payload: OutlinePayload) -> None:
        save_json(payload, self.path, pretty=self.pretty)
        log.debug("Wrote %d sections to %s", len(payload), self.path)

    def load(self) -> list[Section]:
        if not self.path.exists():
            return []
        return deserialize_sections(load_json(self.path))


class MemorySink:
    """Keeps every snapshot in memory; the latest is ``snapshots[-1]``."""

    def __init__(self) -> None:
        self.snapshots: list[OutlinePayload] = []

    def __call__(self, payload: OutlinePayload) -> None:
        self.snapshots.append(payload)

    @property
    def latest(self) -> OutlinePayload | None:
        return self.snapshots[-1] if self.snapshots else None
