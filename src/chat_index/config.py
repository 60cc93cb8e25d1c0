"""Policy constants for the outline pipeline.

Defaults mirror the behaviour of the browser indexer. Every value can be
overridden from a JSON file; unknown keys are ignored so older config
files keep loading.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import orjson


@dataclass(frozen=True, slots=True)
class IndexerConfig:
    """Tunable thresholds and names used across the pipeline."""

    min_code_chars: int = 10          # shorter <pre><code> blocks are inline snippets
    code_preview_chars: int = 100     # code unit text is cut to this preview
    sink_text_chars: int = 50         # text cut before leaving the core
    debounce_seconds: float = 0.5
    id_attribute: str = "data-chat-index-id"
    default_section_title: str = "Conversation"
    default_language: str = "code"

    def __post_init__(self) -> None:
        if self.min_code_chars < 0:
            raise ValueError(f"min_code_chars must be >= 0, got {self.min_code_chars}")
        if self.code_preview_chars <= 0:
            raise ValueError(
                f"code_preview_chars must be > 0, got {self.code_preview_chars}"
            )
        if self.sink_text_chars <= 0:
            raise ValueError(f"sink_text_chars must be > 0, got {self.sink_text_chars}")
        if self.debounce_seconds < 0:
            raise ValueError(
                f"debounce_seconds must be >= 0, got {self.debounce_seconds}"
            )
        if not self.id_attribute:
            raise ValueError("id_attribute must be non-empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexerConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: Path) -> IndexerConfig:
        """Load from an indexer config JSON file."""
        data = orjson.loads(path.read_bytes())
        if not isinstance(data, dict):
            raise ValueError(f"Indexer config must be a JSON object: {path}")
        return cls.from_dict(data)


DEFAULT_CONFIG = IndexerConfig()
