"""Debounced reparse scheduling on an asyncio event loop.

Change notifications arrive in bursts while a reply is streaming in.
:class:`ReparseScheduler` keeps a single timer slot: every
:meth:`~ReparseScheduler.notify` cancels the pending timer and starts a new
one, so a burst collapses into one pass fired after the quiet period. A
pass that has started is never cancelled; passes are synchronous.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

log = logging.getLogger(__name__)


class ReparseScheduler:
    """Single-slot debounce timer around a synchronous callback."""

    def __init__(
        self,
        callback: Callable[[], object],
        *,
        delay: float = 0.5,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._callback = callback
        self.delay = delay
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def notify(self) -> None:
        """Start (or restart) the quiet-period timer.

        Must be called from the event loop thread; without an explicit
        loop the running loop is used.
        """
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending pass, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> bool:
        """Run the pending pass now. Returns False when nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        self.fired += 1
        log.debug("Debounced pass #%d firing", self.fired)
        self._callback()
