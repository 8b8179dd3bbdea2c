"""Stand-in for a field temperature node, for manual and integration testing.

Each accepted connection receives one reading, formatted like ``23.417000``,
then another after either the fixed reporting period or a random
"appreciable change" delay, whichever mode is picked for that round.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from cli.config import SimulatorConfig

logger = logging.getLogger(__name__)


def compose_temperature(config: SimulatorConfig, rng: random.Random) -> str:
    value = rng.uniform(config.min_temperature, config.max_temperature)
    return f"{value:f}"


def next_holdoff(config: SimulatorConfig, rng: random.Random) -> float:
    if rng.choice((True, False)):
        return config.period_seconds
    return rng.uniform(config.change_min_seconds, config.change_max_seconds)


class SensorNodeSimulator:
    """Serves random readings on one TCP port until stopped."""

    def __init__(
        self,
        port: int,
        host: str = "0.0.0.0",
        config: Optional[SimulatorConfig] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.host = host
        self.port = port
        self.config = config or SimulatorConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._server: Optional[asyncio.Server] = None

    @property
    def bound_port(self) -> int:
        if self._server is None or not self._server.sockets:
            raise RuntimeError("Simulator is not listening.")
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> asyncio.Server:
        self._server = await asyncio.start_server(self._serve, self.host, self.port)
        logger.info("Sensor node listening", extra={"address": f"{self.host}:{self.bound_port}"})
        return self._server

    async def serve_forever(self) -> None:
        server = self._server or await self.start()
        async with server:
            await server.serve_forever()

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        logger.info("TCP session established", extra={"endpoint": peer})
        try:
            while True:
                writer.write(compose_temperature(self.config, self._rng).encode("ascii"))
                await writer.drain()
                await self._sleep(next_holdoff(self.config, self._rng))
        except ConnectionError as exc:
            logger.info("TCP session closed", extra={"endpoint": peer, "error": exc})
        finally:
            writer.close()
