"""Per-sensor connection state machine."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from models.records import ConnectionState, SensorDescriptor
from services.network import Endpoint, Link, Network

logger = logging.getLogger(__name__)

StateListener = Callable[[SensorDescriptor, ConnectionState], None]


class ConnectionSupervisor:
    """Resolves one sensor address and connects to the first reachable endpoint.

    Resolution is attempted once. Candidate endpoints are tried in order and
    each one only once; when the list is exhausted the sensor is abandoned
    for the rest of the process lifetime. There is no backoff and no later
    retry.
    """

    def __init__(
        self,
        descriptor: SensorDescriptor,
        network: Network,
        on_connected: Callable[["ConnectionSupervisor"], None],
    ) -> None:
        self.descriptor = descriptor
        self._network = network
        self._on_connected = on_connected
        self._listeners: List[StateListener] = []
        self._state = ConnectionState.resolving
        self._link: Optional[Link] = None
        self._endpoints: List[Endpoint] = []
        self._cursor = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def link(self) -> Optional[Link]:
        return self._link

    @property
    def endpoints(self) -> List[Endpoint]:
        return list(self._endpoints)

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        """Resolve the sensor address and walk its endpoints until one connects."""
        self._transition(ConnectionState.resolving)
        descriptor = self.descriptor
        try:
            endpoints = await self._network.resolve(descriptor.host, descriptor.port)
        except OSError as exc:
            logger.error(
                "Could not resolve IP address query",
                extra={"sensor_index": descriptor.index, "address": descriptor.address, "error": exc},
            )
            endpoints = []
        else:
            if not endpoints:
                logger.error(
                    "Could not resolve IP address query",
                    extra={
                        "sensor_index": descriptor.index,
                        "address": descriptor.address,
                        "error": "no endpoints",
                    },
                )

        if not endpoints:
            self._transition(ConnectionState.abandoned)
            return

        self._endpoints = list(endpoints)
        for cursor, endpoint in enumerate(self._endpoints):
            self._cursor = cursor
            if await self.connect(endpoint):
                return

        self._cursor = len(self._endpoints)
        logger.warning(
            "Giving up on connecting: exhausted resolved endpoints list",
            extra={"sensor_index": descriptor.index, "address": descriptor.address},
        )
        self._transition(ConnectionState.abandoned)

    async def connect(self, endpoint: Endpoint) -> bool:
        """Attempt one endpoint. Returns True once the sensor is connected."""
        self._transition(ConnectionState.connecting)
        descriptor = self.descriptor
        logger.debug(
            "Connecting to TCP endpoint",
            extra={"sensor_index": descriptor.index, "endpoint": _format_endpoint(endpoint)},
        )
        try:
            link = await self._network.connect(endpoint)
        except OSError as exc:
            logger.error(
                "Failure in connecting to TCP socket",
                extra={
                    "sensor_index": descriptor.index,
                    "endpoint": _format_endpoint(endpoint),
                    "error": exc,
                },
            )
            return False

        if not link.is_open:
            logger.error(
                "Failure in connecting to TCP socket",
                extra={
                    "sensor_index": descriptor.index,
                    "endpoint": _format_endpoint(endpoint),
                    "error": "connection somehow timed out",
                },
            )
            link.close()
            return False

        self._link = link
        self._transition(ConnectionState.connected)
        logger.info(
            "Successfully connected",
            extra={"sensor_index": descriptor.index, "endpoint": _format_endpoint(endpoint)},
        )
        self._on_connected(self)
        return True

    def close(self) -> None:
        if self._link is not None and self._link.is_open:
            self._link.close()

    def _transition(self, state: ConnectionState) -> None:
        if self._state is ConnectionState.abandoned:
            raise RuntimeError(f"Sensor {self.descriptor.address} was already abandoned.")
        self._state = state
        logger.debug(
            "Connection state changed",
            extra={"sensor_index": self.descriptor.index, "state": state.value},
        )
        for listener in tuple(self._listeners):
            listener(self.descriptor, state)


def _format_endpoint(endpoint: Endpoint) -> str:
    return f"{endpoint[0]}:{endpoint[1]}"
