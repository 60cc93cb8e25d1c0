"""Content classification for individual message nodes.

Decides whether a node is an indexable heading, an indexable code block,
or neither. Plain-text units are produced from a whole message container
and only when the message has no structural units at all.

Rules:
    - ``<h1>``..``<h6>``: always a heading, level from the tag, trimmed
      text (empty headings are still indexed).
    - ``<code>``: a code block only when its immediate parent is ``<pre>``
      and its text is at least ``min_code_chars`` long. Language comes from
      the first ``language-<x>`` / ``lang-<x>`` class token, else
      ``default_language``. Text is cut to a ``code_preview_chars`` preview.
    - Anything else is skipped (``None``).

No document mutation here; id annotation happens where ids are assigned.
"""
from __future__ import annotations

import re

from bs4.element import Tag

from chat_index.config import DEFAULT_CONFIG, IndexerConfig
from chat_index.html_utils import class_tokens, heading_level, node_text, parent_name, raw_text
from chat_index.unit_types import UNIT_CODE, UNIT_HEADING, UNIT_TEXT, UnitDescriptor

_LANGUAGE_CLASS_RE = re.compile(r"^(?:language|lang)-(.+)$")


def truncate(text: str, limit: int) -> str:
    """Cut *text* to *limit* chars, appending ``...`` when anything was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def detect_language(node: Tag | None, *, default: str = "code") -> str:
    """Language named by the node's class tokens; first match wins."""
    for token in class_tokens(node):
        m = _LANGUAGE_CLASS_RE.match(token)
        if m:
            return m.group(1)
    return default


def is_code_block(node: Tag) -> bool:
    """A ``<code>`` node sitting directly inside a ``<pre>`` block."""
    return (node.name or "").lower() == "code" and parent_name(node).lower() == "pre"


def classify(
    node: Tag | None,
    *,
    config: IndexerConfig = DEFAULT_CONFIG,
) -> UnitDescriptor | None:
    """Classify one content node, or return None to skip it."""
    if node is None:
        return None

    level = heading_level(node)
    if level is not None:
        return UnitDescriptor(UNIT_HEADING, node_text(node), heading_level=level)

    if (node.name or "").lower() != "code":
        return None
    if not is_code_block(node):
        return None  # inline code
    text = raw_text(node)
    if len(text) < config.min_code_chars:
        return None
    return UnitDescriptor(
        UNIT_CODE,
        truncate(text, config.code_preview_chars),
        language=detect_language(node, default=config.default_language),
    )


def classify_text(container: Tag | None) -> UnitDescriptor:
    """Whole-container plain-text descriptor (may carry an empty string)."""
    return UnitDescriptor(UNIT_TEXT, node_text(container))
