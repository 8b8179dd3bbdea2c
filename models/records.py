"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of a single sensor connection."""

    resolving = "resolving"
    connecting = "connecting"
    connected = "connected"
    abandoned = "abandoned"


@dataclass(frozen=True, slots=True)
class SensorDescriptor:
    """Fixed address of one temperature sensor node."""

    index: int
    host: str
    port: str

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class ReadingRecord:
    """Latest raw payload received from a sensor and when it arrived.

    ``raw_text`` is kept exactly as received; it is only parsed when an
    average is computed.
    """

    raw_text: str
    last_updated: float
