"""Perpetual receive loop for one connected sensor."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from datastore.reading_store import ReadingStore
from models.records import SensorDescriptor
from services.network import Link

logger = logging.getLogger(__name__)


class PeerClosedError(ConnectionError):
    """The sensor node closed its end of the connection."""


class ReadLoop:
    """Keeps exactly one receive outstanding on a sensor link, forever.

    Every successful payload replaces the sensor's reading record and
    triggers ``notify``; every failure is logged and the record is left
    alone. Either way the next receive is issued straight after.
    """

    def __init__(
        self,
        descriptor: SensorDescriptor,
        link: Link,
        store: ReadingStore,
        notify: Callable[[], object],
        buffer_size: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.descriptor = descriptor
        self.link = link
        self.store = store
        self.buffer_size = buffer_size
        self._notify = notify
        self._clock = clock
        self._task: Optional[asyncio.Task[None]] = None
        self.reads_completed = 0
        self.read_failures = 0

    @property
    def task(self) -> Optional[asyncio.Task[None]]:
        return self._task

    def arm(self) -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            raise RuntimeError(f"Read loop for {self.descriptor.address} is already armed.")
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(
            self.run(), name=f"read-loop-{self.descriptor.index}"
        )
        return self._task

    async def run(self) -> None:
        while True:
            await self.read_once()
            # Yield so a link that fails instantly cannot starve other sensors.
            await asyncio.sleep(0)

    async def read_once(self) -> bool:
        """Issue a single receive. Returns True when a reading was stored."""
        descriptor = self.descriptor
        try:
            payload = await self.link.receive(self.buffer_size)
            if not payload:
                raise PeerClosedError("end of stream")
        except OSError as exc:
            self.read_failures += 1
            logger.error(
                "Failure in reading from TCP socket connection",
                extra={"sensor_index": descriptor.index, "address": descriptor.address, "error": exc},
            )
            return False

        raw_text = payload.decode("ascii", errors="replace")
        self.store.update(descriptor.index, raw_text, self._clock())
        self.reads_completed += 1
        self._notify()
        return True
