"""Wiring of sensors, read loops and the readout display."""

from __future__ import annotations

import logging
import threading
import time
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence

from datastore.reading_store import ReadingStore
from models.records import ConnectionState, SensorDescriptor
from services.aggregator import Aggregator
from services.display import ConsoleDisplay, DisplaySurface, ReadoutDisplay
from services.network import Network, SocketNetwork
from services.reactor import Reactor
from services.read_loop import ReadLoop
from services.registry import registry_from_settings
from services.supervisor import ConnectionSupervisor, StateListener
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ReadoutEngine:
    """Coordinates the sensor connections, the reading store and the display."""

    def __init__(
        self,
        registry: Sequence[SensorDescriptor],
        surface: DisplaySurface,
        network: Optional[Network] = None,
        stale_reading_seconds: float = 600.0,
        min_display_interval: float = 1.0,
        read_buffer_size: int = 87380,
        unit: str = "°C",
        clock: Callable[[], float] = time.monotonic,
        reactor: Optional[Reactor] = None,
    ) -> None:
        if not registry:
            raise ValueError("Readout engine needs at least one sensor.")
        self.registry = tuple(registry)
        self.network = network or SocketNetwork()
        self.read_buffer_size = read_buffer_size
        self.reactor = reactor or Reactor()
        self._clock = clock

        self.store = ReadingStore(len(self.registry), stale_reading_seconds, clock())
        self.aggregator = Aggregator(stale_reading_seconds)
        self.display = ReadoutDisplay(
            store=self.store,
            aggregator=self.aggregator,
            surface=surface,
            min_display_interval=min_display_interval,
            unit=unit,
            clock=clock,
            schedule=self.reactor.post_later,
        )
        self.supervisors: List[ConnectionSupervisor] = [
            ConnectionSupervisor(descriptor, self.network, on_connected=self._on_connected)
            for descriptor in self.registry
        ]
        self.read_loops: Dict[int, ReadLoop] = {}
        self._connected_count = 0
        self._stop_lock = threading.Lock()
        self._stopped = threading.Event()
        self._started = False

        # Nothing has been read yet.
        self.display.show_sentinel()

    def now(self) -> float:
        return self._clock()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def add_state_listener(self, listener: StateListener) -> None:
        for supervisor in self.supervisors:
            supervisor.add_listener(listener)

    def connection_states(self) -> List[ConnectionState]:
        return [supervisor.state for supervisor in self.supervisors]

    def start(self) -> None:
        """Start the worker thread and begin connecting to every sensor."""
        with self._stop_lock:
            if self._started or self.stopped:
                raise RuntimeError("Readout engine can only be started once.")
            self._started = True
        self.reactor.start()
        for supervisor in self.supervisors:
            self.reactor.spawn(supervisor.start, name=f"connect-{supervisor.descriptor.index}")

    def notify_reading_updated(self) -> bool:
        """Hand the display refresh over to the worker thread."""
        return self.reactor.post(self.display.on_reading_updated)

    def stop(self) -> None:
        """Stop the worker thread and show the no-data line exactly once."""
        with self._stop_lock:
            if self.stopped:
                return
            self._stopped.set()

        if not self.reactor.stop():
            logger.warning(
                "Worker thread outlived shutdown; readout lines may still follow the no-data line"
            )
        for supervisor in self.supervisors:
            supervisor.close()
        self.display.show_sentinel()
        logger.info("Readout engine stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until ``stop`` has been called."""
        return self._stopped.wait(timeout)

    def _on_connected(self, supervisor: ConnectionSupervisor) -> None:
        descriptor = supervisor.descriptor
        link = supervisor.link
        if link is None:
            raise RuntimeError(f"Sensor {descriptor.address} reported connected without a link.")
        self._connected_count += 1
        if self._connected_count == len(self.registry):
            logger.info("All temperature sensor nodes have been successfully connected to")

        read_loop = ReadLoop(
            descriptor=descriptor,
            link=link,
            store=self.store,
            notify=self.notify_reading_updated,
            buffer_size=self.read_buffer_size,
            clock=self._clock,
        )
        self.read_loops[descriptor.index] = read_loop
        read_loop.arm()


def engine_from_settings(
    settings: Settings, surface: Optional[DisplaySurface] = None
) -> ReadoutEngine:
    return ReadoutEngine(
        registry=registry_from_settings(settings),
        surface=surface or ConsoleDisplay(),
        stale_reading_seconds=settings.stale_reading_seconds,
        min_display_interval=settings.min_display_interval_seconds,
        read_buffer_size=settings.read_buffer_size,
        unit=settings.display_unit,
    )


@lru_cache
def build_default_engine() -> ReadoutEngine:
    """Factory that wires the engine from environment settings."""
    return engine_from_settings(get_settings())
