"""HTML parsing and node-text helpers.

Thin layer over BeautifulSoup so the rest of the pipeline never touches
bs4 details directly. All helpers tolerate ``None`` and detached nodes:
missing content degrades to an empty string, never an exception.
"""
from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import Tag

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

# U+200B (ZWSP), U+200C (ZWNJ), U+FEFF (BOM) leak in from rendered markdown
# and would otherwise survive strip().
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\ufeff]")


def parse_html(raw_html: str) -> BeautifulSoup:
    """Parse a document snapshot with the stdlib-backed bs4 parser."""
    return BeautifulSoup(raw_html or "", "html.parser")


def strip_zero_width(text: str) -> str:
    """Remove zero-width Unicode characters."""
    return _ZERO_WIDTH_RE.sub("", text)


def raw_text(node: Tag | None) -> str:
    """Untrimmed text content of *node* ("" for a missing node)."""
    if node is None:
        return ""
    return strip_zero_width(node.get_text())


def node_text(node: Tag | None) -> str:
    """Trimmed text content of *node* ("" for a missing node)."""
    return raw_text(node).strip()


def class_tokens(node: Tag | None) -> list[str]:
    """Class tokens of *node* in source order.

    bs4 splits ``class`` into a list for html.parser documents, but a
    programmatically assigned string is kept as-is; both are handled.
    """
    if node is None:
        return []
    value = node.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(v) for v in value]


def has_class(node: Tag | None, name: str) -> bool:
    return name in class_tokens(node)


def parent_name(node: Tag | None) -> str:
    """Tag name of the immediate parent element ("" when detached)."""
    if node is None or node.parent is None:
        return ""
    return str(node.parent.name or "")


def heading_level(node: Tag) -> int | None:
    """Level 1..6 for ``<h1>``..``<h6>``, else None."""
    name = (node.name or "").lower()
    if name in HEADING_TAGS:
        return int(name[1])
    return None


def annotate_node(node: Tag, attribute: str, unit_id: str) -> None:
    """Tag *node* with its unit id for later lookup.

    Write-only annotation: it never changes document structure.
    """
    node[attribute] = unit_id


def clear_annotations(root: Tag, attribute: str) -> int:
    """Drop *attribute* from *root* and every node under it; returns the count."""
    nodes = [root] if root.has_attr(attribute) else []
    nodes.extend(root.find_all(attrs={attribute: True}))
    for node in nodes:
        del node[attribute]
    return len(nodes)
