"""Periodic re-resolution of the current price slot.

The loop is driven by an asyncio event loop timer. Side effects go through a
DisplaySink and are only applied when the resolved slot's label changes.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol

import pandas as pd

from agile_prices.config import REFRESH_INTERVAL_SECONDS
from agile_prices.presentation import display_label, local_now
from agile_prices.price_repository import PriceSeries
from agile_prices.slot_resolver import ResolvedState, resolve

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"


class DisplaySink(Protocol):
    def set_title(self, label: str) -> None: ...

    def scroll_to_slot(self, key: str) -> None: ...


class LoggingDisplaySink:
    """Writes title changes to the log instead of a browser tab"""

    def __init__(self):
        self.title = None

    def set_title(self, label: str) -> None:
        self.title = label
        logger.info(f"⚡ Current price: {label}")

    def scroll_to_slot(self, key: str) -> None:
        logger.debug(f"Current slot key: {key}")


class RefreshLoop:
    """Re-resolves the current slot every `interval` seconds while active"""

    def __init__(self, sink: DisplaySink, interval: float = REFRESH_INTERVAL_SECONDS,
                 clock: Callable[[], pd.Timestamp] = local_now):
        self.sink = sink
        self.interval = interval
        self.clock = clock
        self.state = IDLE
        self.series: Optional[PriceSeries] = None
        self.resolved: Optional[ResolvedState] = None
        self.applied_label: Optional[str] = None
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    def start(self, event_loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Enter the active state: tick now, then every `interval` seconds."""
        if self.state == ACTIVE:
            return
        self._event_loop = event_loop or asyncio.get_running_loop()
        self.state = ACTIVE
        logger.debug(f"Refresh loop started, interval={self.interval}s")
        self._run()

    def stop(self) -> None:
        """Return to idle and cancel the pending tick."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.state == ACTIVE:
            logger.debug("Refresh loop stopped")
        self.state = IDLE
        self._event_loop = None

    def set_series(self, series: Optional[PriceSeries]) -> None:
        """Swap in a newly fetched series, restarting the timer if active."""
        self.series = series
        if self.state == ACTIVE:
            if self._handle is not None:
                self._handle.cancel()
            self._run()

    def tick(self, now: Optional[pd.Timestamp] = None) -> Optional[ResolvedState]:
        """
        Resolve the current slot and apply side effects if it changed.

        Returns None without touching the sink when there is no series yet.
        """
        series = self.series
        if series is None:
            return None

        resolved = resolve(series, now if now is not None else self.clock())
        self.resolved = resolved

        slot = resolved.current_slot
        if slot is None:
            return resolved

        label = display_label(slot)
        if label != self.applied_label:
            self.sink.set_title(label)
            self.sink.scroll_to_slot(slot.key)
            self.applied_label = label
        return resolved

    def _run(self) -> None:
        try:
            self.tick()
        finally:
            if self.state == ACTIVE:
                self._handle = self._event_loop.call_later(self.interval, self._run)
