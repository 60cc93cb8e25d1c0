"""Site-specific extraction strategies and the indexer that drives them.

A strategy knows how one host lays out a conversation: where messages
live, who wrote each one, and which sub-container holds the rendered
content. Everything after that is shared:

    1. author message -> one plain-text unit with the full trimmed text
    2. assistant message -> headings and ``<pre><code>`` blocks in document
       order via the classifier; no structural units -> one plain-text unit
    3. depths from :func:`chat_index.hierarchy.assign_depths`
    4. sections from :func:`chat_index.sections.partition_messages`

The strategy set is closed and ordered (:class:`StrategyKind`); the first
whose host predicate matches wins. No match means an empty outline, not
an error: unsupported sites simply have no index.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from bs4.element import Tag

from chat_index.classifier import classify, classify_text
from chat_index.config import DEFAULT_CONFIG, IndexerConfig
from chat_index.hierarchy import assign_depths
from chat_index.html_utils import HEADING_TAGS, annotate_node, clear_annotations, has_class, node_text
from chat_index.sections import all_units, partition_messages
from chat_index.unit_types import (
    ROLE_ASSISTANT,
    ROLE_AUTHOR,
    UNIT_CODE,
    UNIT_HEADING,
    Message,
    Role,
    Section,
    Unit,
)

log = logging.getLogger(__name__)

_STRUCTURAL_TAGS: list[str] = [*HEADING_TAGS, "code"]
_AUTHOR_ROLE_ATTR = "data-message-author-role"


# ---------------------------------------------------------------------------
# Strategy records
# ---------------------------------------------------------------------------


class StrategyKind(Enum):
    """Registered site variants, in selection order."""

    MOCK = "mock"
    CHATGPT = "chatgpt"


@dataclass(frozen=True, slots=True)
class SiteStrategy:
    """One host variant: a match predicate plus DOM selection functions."""

    kind: StrategyKind
    name: str
    message_prefix: str
    matches_host: Callable[[str], bool]
    find_messages: Callable[[Tag], list[Tag]]
    role_of: Callable[[Tag], Role]
    content_root: Callable[[Tag], Tag]

    def can_handle(self, host: str) -> bool:
        return self.matches_host(host)

    def parse(self, root: Tag, *, config: IndexerConfig = DEFAULT_CONFIG) -> list[Section]:
        return parse_conversation(self, root, config=config)


# -- mock (local test pages) -------------------------------------------------


def _mock_matches(host: str) -> bool:
    return host in ("localhost", "127.0.0.1")


def _mock_messages(root: Tag) -> list[Tag]:
    container = root.select_one(".chat-container")
    if container is None:
        return []
    return list(container.select(".message"))


def _mock_role(element: Tag) -> Role:
    return ROLE_AUTHOR if has_class(element, "user") else ROLE_ASSISTANT


def _mock_content_root(element: Tag) -> Tag:
    return element


# -- chatgpt -----------------------------------------------------------------


def _chatgpt_matches(host: str) -> bool:
    return "chatgpt.com" in host or "openai.com" in host


def _chatgpt_messages(root: Tag) -> list[Tag]:
    articles = root.find_all("article")
    if articles:
        return list(articles)
    return list(root.find_all(attrs={_AUTHOR_ROLE_ATTR: True}))


def _chatgpt_role(element: Tag) -> Role:
    if element.get(_AUTHOR_ROLE_ATTR) == "user":
        return ROLE_AUTHOR
    if element.find(attrs={_AUTHOR_ROLE_ATTR: "user"}) is not None:
        return ROLE_AUTHOR
    return ROLE_ASSISTANT


def _chatgpt_content_root(element: Tag) -> Tag:
    return (
        element.select_one(".markdown")
        or element.select_one(".whitespace-pre-wrap")
        or element
    )


STRATEGIES: dict[StrategyKind, SiteStrategy] = {
    StrategyKind.MOCK: SiteStrategy(
        kind=StrategyKind.MOCK,
        name="MockParser",
        message_prefix="msg",
        matches_host=_mock_matches,
        find_messages=_mock_messages,
        role_of=_mock_role,
        content_root=_mock_content_root,
    ),
    StrategyKind.CHATGPT: SiteStrategy(
        kind=StrategyKind.CHATGPT,
        name="ChatGPTParser",
        message_prefix="gpt-msg",
        matches_host=_chatgpt_matches,
        find_messages=_chatgpt_messages,
        role_of=_chatgpt_role,
        content_root=_chatgpt_content_root,
    ),
}


def normalize_host(site: str) -> str:
    """Host part of *site*, which may be a bare host name or a full URL."""
    site = (site or "").strip()
    if "://" in site:
        return (urlsplit(site).hostname or "").lower()
    return site.lower()


def select_strategy(
    site: str,
    strategies: Sequence[SiteStrategy] | None = None,
) -> SiteStrategy | None:
    """First strategy (in registration order) that handles *site*."""
    host = normalize_host(site)
    candidates = STRATEGIES.values() if strategies is None else strategies
    for strategy in candidates:
        if strategy.can_handle(host):
            return strategy
    return None


# ---------------------------------------------------------------------------
# Per-message extraction
# ---------------------------------------------------------------------------


def extract_structured_units(
    container: Tag,
    base_id: str,
    *,
    config: IndexerConfig = DEFAULT_CONFIG,
) -> list[Unit]:
    """Heading and code units of an assistant message, in document order."""
    units: list[Unit] = []
    item_index = 0

    for node in container.find_all(_STRUCTURAL_TAGS):
        descriptor = classify(node, config=config)
        if descriptor is None:
            continue
        if descriptor.unit_type == UNIT_HEADING:
            unit_id = f"{base_id}-h{descriptor.heading_level}-{item_index}"
        elif descriptor.unit_type == UNIT_CODE:
            unit_id = f"{base_id}-code-{item_index}"
        else:
            continue
        item_index += 1
        annotate_node(node, config.id_attribute, unit_id)
        units.append(Unit.from_descriptor(unit_id, ROLE_ASSISTANT, descriptor, source=node))

    return units


def extract_message(
    strategy: SiteStrategy,
    element: Tag,
    index: int,
    *,
    config: IndexerConfig = DEFAULT_CONFIG,
) -> Message:
    """Units of one message element, depths assigned."""
    message_id = f"{strategy.message_prefix}-{index}"
    role = strategy.role_of(element)
    container = strategy.content_root(element)

    if role == ROLE_AUTHOR:
        annotate_node(element, config.id_attribute, message_id)
        unit = Unit(message_id, ROLE_AUTHOR, node_text(container), source=element)
        return Message(id=message_id, index=index, role=role, units=(unit,))

    units = extract_structured_units(container, message_id, config=config)
    if not units:
        text_id = f"{message_id}-text"
        annotate_node(container, config.id_attribute, text_id)
        units = [
            Unit.from_descriptor(text_id, ROLE_ASSISTANT, classify_text(container), source=container)
        ]
    return Message(id=message_id, index=index, role=role, units=tuple(assign_depths(units)))


def extract_messages(
    strategy: SiteStrategy,
    root: Tag,
    *,
    config: IndexerConfig = DEFAULT_CONFIG,
) -> list[Message]:
    elements = strategy.find_messages(root)
    if not elements:
        log.debug("%s: no message containers found", strategy.name)
    return [
        extract_message(strategy, element, index, config=config)
        for index, element in enumerate(elements)
    ]


def parse_conversation(
    strategy: SiteStrategy,
    root: Tag,
    *,
    config: IndexerConfig = DEFAULT_CONFIG,
) -> list[Section]:
    """Full outline of the conversation under *root*."""
    messages = extract_messages(strategy, root, config=config)
    return partition_messages(messages, default_title=config.default_section_title)


# ---------------------------------------------------------------------------
# Indexer
# ---------------------------------------------------------------------------


class ChatIndexer:
    """Selects a strategy for the current site and re-runs it on demand.

    *site* is either a fixed host/URL string or a zero-argument callable
    returning the current one. Selection sticks once a strategy matches;
    while nothing matches it is re-evaluated on every :meth:`reparse`, so
    client-side navigation to a supported site is picked up without a
    reload.
    """

    def __init__(
        self,
        site: str | Callable[[], str],
        *,
        config: IndexerConfig = DEFAULT_CONFIG,
        strategies: Sequence[SiteStrategy] | None = None,
    ) -> None:
        self._site = site if callable(site) else (lambda: site)
        self.config = config
        self._strategies = tuple(STRATEGIES.values()) if strategies is None else tuple(strategies)
        self._active: SiteStrategy | None = None
        self._sources: dict[str, Tag] = {}
        self._select()

    def _select(self) -> SiteStrategy | None:
        site = self._site()
        self._active = select_strategy(site, self._strategies)
        if self._active is not None:
            log.info("Selected strategy %s for %s", self._active.name, site)
        else:
            log.info("No matching strategy found for %s", site)
        return self._active

    @property
    def active(self) -> SiteStrategy | None:
        return self._active

    def reparse(self, root: Tag) -> list[Section]:
        """Recompute the whole outline from *root* (no incremental diffing).

        Annotations from earlier passes are cleared first, and the lookup
        map used by :meth:`locate` is rebuilt from the fresh units.
        """
        self._sources = {}
        strategy = self._active or self._select()
        if strategy is None:
            return []
        cleared = clear_annotations(root, self.config.id_attribute)
        if cleared:
            log.debug("Cleared %d stale annotations", cleared)
        sections = strategy.parse(root, config=self.config)
        self._sources = {
            unit.id: unit.source for unit in all_units(sections) if unit.source is not None
        }
        return sections

    def locate(self, unit_id: str) -> Tag | None:
        """Source node of *unit_id* from the last pass, or None."""
        if not unit_id:
            return None
        return self._sources.get(unit_id)
