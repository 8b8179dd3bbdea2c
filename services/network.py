"""Non-blocking TCP plumbing used to reach the sensor nodes."""

from __future__ import annotations

import asyncio
import socket
from typing import List, Protocol, Tuple

Endpoint = Tuple[str, int]


class Link(Protocol):
    @property
    def is_open(self) -> bool:
        ...

    async def receive(self, size: int) -> bytes:
        ...

    def close(self) -> None:
        ...


class Network(Protocol):
    async def resolve(self, host: str, port: str) -> List[Endpoint]:
        ...

    async def connect(self, endpoint: Endpoint) -> Link:
        ...


class SensorLink:
    """Connected, non-blocking stream socket to one sensor node."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    @property
    def is_open(self) -> bool:
        return self._sock.fileno() != -1

    async def receive(self, size: int) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.sock_recv(self._sock, size)

    def close(self) -> None:
        self._sock.close()


class SocketNetwork:
    """IPv4 resolution and connection establishment on the running event loop."""

    async def resolve(self, host: str, port: str) -> List[Endpoint]:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(
            host, port, family=socket.AF_INET, type=socket.SOCK_STREAM
        )
        endpoints: List[Endpoint] = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            endpoint = (sockaddr[0], sockaddr[1])
            if endpoint not in endpoints:
                endpoints.append(endpoint)
        return endpoints

    async def connect(self, endpoint: Endpoint) -> SensorLink:
        loop = asyncio.get_running_loop()
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setblocking(False)
        try:
            await loop.sock_connect(sock, endpoint)
        except BaseException:
            sock.close()
            raise
        return SensorLink(sock)
