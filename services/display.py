"""Throttled readout of the average temperature."""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Optional, Protocol

import typer

from datastore.reading_store import ReadingStore
from services.aggregator import AggregationSummary, Aggregator

logger = logging.getLogger(__name__)

SENTINEL_VALUE = "--.-"

# Runs the callback after the delay in seconds; False when it cannot be scheduled.
Scheduler = Callable[[float, Callable[[], None]], bool]


class DisplaySurface(Protocol):
    def show(self, line: str) -> None:
        ...


class ConsoleDisplay:
    """Writes readout lines to stdout, indented like a wall panel."""

    def show(self, line: str) -> None:
        typer.echo(f"\t\t{line}")


def format_readout(mean_value: Optional[float], unit: str) -> str:
    if mean_value is None:
        return f"{SENTINEL_VALUE} {unit}"
    return f"{mean_value:.1f} {unit}"


class ReadoutDisplay:
    """Computes and emits the average reading at most once per display interval.

    Both the constructing thread and the reactor's worker thread call into
    this object, so every access to the display state happens under
    ``_lock``.

    Without a ``schedule`` the throttle only drops refreshes and nothing
    is deferred.
    """

    def __init__(
        self,
        store: ReadingStore,
        aggregator: Aggregator,
        surface: DisplaySurface,
        min_display_interval: float,
        unit: str,
        clock: Callable[[], float] = time.monotonic,
        schedule: Optional[Scheduler] = None,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.surface = surface
        self.min_display_interval = min_display_interval
        self.unit = unit
        self._clock = clock
        self._lock = Lock()
        self._last_displayed_at: Optional[float] = None
        self._last_line: Optional[str] = None
        self._last_summary = AggregationSummary()
        self._schedule = schedule
        self._refresh_pending = False

    @property
    def last_line(self) -> Optional[str]:
        with self._lock:
            return self._last_line

    @property
    def last_summary(self) -> AggregationSummary:
        with self._lock:
            return self._last_summary

    def show_sentinel(self) -> None:
        """Emit the no-data line regardless of the throttle."""
        with self._lock:
            self._emit(format_readout(None, self.unit))
            self._last_summary = AggregationSummary()
            self._last_displayed_at = self._clock()

    def on_reading_updated(self) -> bool:
        """Refresh the readout unless the previous one is too recent.

        A refresh refused by the throttle arms one trailing refresh for the
        end of the window, so the last reads of a burst still get shown.
        Returns True when a line was emitted.
        """
        with self._lock:
            now = self._clock()
            if (
                self._last_displayed_at is not None
                and now - self._last_displayed_at < self.min_display_interval
            ):
                self._arm_trailing_refresh(now)
                return False

            summary = self.aggregator.aggregate(self.store.snapshot(), now)
            self._emit(format_readout(summary.mean_value, self.unit))
            self._last_summary = summary
            self._last_displayed_at = self._clock()
            logger.debug("Readout refreshed", extra={"fresh_count": summary.fresh_count})
            return True

    def _arm_trailing_refresh(self, now: float) -> None:
        if self._refresh_pending or self._schedule is None or self._last_displayed_at is None:
            return
        delay = self._last_displayed_at + self.min_display_interval - now
        self._refresh_pending = bool(self._schedule(delay, self._trailing_refresh))

    def _trailing_refresh(self) -> None:
        with self._lock:
            self._refresh_pending = False
        self.on_reading_updated()

    def _emit(self, line: str) -> None:
        self.surface.show(line)
        self._last_line = line
