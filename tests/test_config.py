"""Tests for chat_index.config: IndexerConfig defaults and loading."""
from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from chat_index.config import DEFAULT_CONFIG, IndexerConfig


def test_defaults() -> None:
    assert DEFAULT_CONFIG.min_code_chars == 10
    assert DEFAULT_CONFIG.code_preview_chars == 100
    assert DEFAULT_CONFIG.sink_text_chars == 50
    assert DEFAULT_CONFIG.debounce_seconds == 0.5
    assert DEFAULT_CONFIG.id_attribute == "data-chat-index-id"
    assert DEFAULT_CONFIG.default_section_title == "Conversation"
    assert DEFAULT_CONFIG.default_language == "code"


def test_from_json_ignores_unknown_keys(tmp_path: Path) -> None:
    path = tmp_path / "indexer.json"
    path.write_bytes(orjson.dumps({"min_code_chars": 4, "sink_text_chars": 80, "legacy": True}))
    config = IndexerConfig.from_json(path)
    assert config.min_code_chars == 4
    assert config.sink_text_chars == 80
    assert config.code_preview_chars == 100


def test_from_json_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "indexer.json"
    path.write_bytes(b"[1, 2]")
    with pytest.raises(ValueError, match="JSON object"):
        IndexerConfig.from_json(path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"min_code_chars": -1},
        {"code_preview_chars": 0},
        {"sink_text_chars": 0},
        {"debounce_seconds": -0.1},
        {"id_attribute": ""},
    ],
)
def test_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        IndexerConfig.from_dict(overrides)
