"""Wiring between document changes, the indexer, and the outline sink.

:class:`IndexService` is what a host page integration talks to: it is
handed the document root on load and on every mutation, keeps the latest
serialized outline, and answers the small action protocol used by the
outline viewer (``ping``, ``get_index``, ``refresh_index``,
``scroll_to``). Unknown or malformed requests are ignored (``None``).
"""
from __future__ import annotations

import logging
from typing import Any

from bs4.element import Tag

from chat_index.scheduler import ReparseScheduler
from chat_index.sink import MemorySink, OutlinePayload, OutlineSink, serialize_sections
from chat_index.strategy import ChatIndexer

log = logging.getLogger(__name__)


class IndexService:
    def __init__(
        self,
        indexer: ChatIndexer,
        sink: OutlineSink | None = None,
        *,
        delay: float | None = None,
    ) -> None:
        self.indexer = indexer
        self._sink: OutlineSink = MemorySink() if sink is None else sink
        self._root: Tag | None = None
        self.latest: OutlinePayload = []
        self.scheduler = ReparseScheduler(
            self._scheduled_refresh,
            delay=indexer.config.debounce_seconds if delay is None else delay,
        )

    def start(self, root: Tag) -> OutlinePayload:
        """Record *root* and run the initial pass immediately."""
        self._root = root
        return self.refresh()

    def on_mutation(self, root: Tag | None = None) -> None:
        """Change notification: schedule a debounced pass."""
        if root is not None:
            self._root = root
        self.scheduler.notify()

    def refresh(self) -> OutlinePayload:
        """Reparse now and hand the snapshot to the sink.

        Sink errors propagate; the snapshot is still kept as ``latest``.
        """
        if self._root is None:
            self.latest = []
            return self.latest
        sections = self.indexer.reparse(self._root)
        self.latest = serialize_sections(sections, config=self.indexer.config)
        self._sink(self.latest)
        return self.latest

    def _scheduled_refresh(self) -> None:
        try:
            self.refresh()
        except Exception:
            log.exception("Error saving index")

    def handle_request(self, request: Any) -> dict[str, Any] | None:
        """Answer one viewer request. Unknown actions return None."""
        if not isinstance(request, dict):
            return None
        action = request.get("action")

        if action == "ping":
            return {"status": "pong"}
        if action == "get_index":
            return {"status": "ok", "sections": self.latest}
        if action == "refresh_index":
            try:
                self.refresh()
            except Exception as e:
                log.error("Error handling %s: %s", action, e)
                return {"status": "error", "error": str(e)}
            return {"status": "ok"}
        if action == "scroll_to":
            unit_id = request.get("id")
            found = isinstance(unit_id, str) and self.indexer.locate(unit_id) is not None
            return {"status": "ok", "found": found}
        return None
