"""Pytest configuration and shared fixtures."""

import asyncio
import contextlib
import struct
from typing import Dict, List, Optional, Sequence

import pytest
import pytest_asyncio

from betacrew_client.config.settings import ServerConfig
from betacrew_client.protocol.record import RECORD_FORMAT


HANG = object()


def build_frame(
    symbol: bytes = b"AAPL",
    side: bytes = b"B",
    quantity: int = 100,
    price: int = 1500,
    sequence: int = 1
) -> bytes:
    """Pack a wire frame without any validation, so invalid frames can be built."""
    return struct.pack(RECORD_FORMAT, symbol, side, quantity, price, sequence)


class FakeConnection:
    """Scripted connection. Each read returns the next item: bytes are
    returned, exceptions are raised, HANG blocks forever, and an exhausted
    script reads as EOF."""

    def __init__(self, chunks: Sequence = ()):
        self.chunks = list(chunks)
        self.writes: List[bytes] = []
        self.closed = False

    async def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    async def read(self, n: int) -> bytes:
        if not self.chunks:
            return b""
        item = self.chunks.pop(0)
        if item is HANG:
            await asyncio.sleep(3600)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class ScriptedConnector:
    """Connection factory handing out prepared connections in order."""

    def __init__(self, *connections):
        self.connections = list(connections)
        self.calls: List[tuple] = []

    async def __call__(self, host: str, port: int):
        self.calls.append((host, port))
        item = self.connections.pop(0)
        if item is HANG:
            await asyncio.sleep(3600)
        if isinstance(item, BaseException):
            raise item
        return item


class FakeBetaCrewServer:
    """In-process BetaCrew exchange server speaking the wire protocol.

    ``resend_frames`` maps a sequence to the bytes sent back for it; a
    sequence without an entry gets the connection closed with no reply.
    """

    def __init__(
        self,
        stream_frames: Sequence[bytes] = (),
        resend_frames: Optional[Dict[int, bytes]] = None,
        chunk_sizes: Optional[Sequence[int]] = None
    ):
        self.stream_payload = b"".join(stream_frames)
        self.resend_frames = dict(resend_frames or {})
        self.chunk_sizes = list(chunk_sizes or [])
        self.requests: List[tuple] = []
        self.server: Optional[asyncio.AbstractServer] = None
        self.port: Optional[int] = None

    async def start(self):
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]

    async def stop(self):
        if self.server:
            self.server.close()
            await self.server.wait_closed()

    def _chunks(self):
        payload = self.stream_payload
        sizes = self.chunk_sizes or [len(payload)]
        index = 0
        while payload:
            size = max(1, sizes[index % len(sizes)])
            yield payload[:size]
            payload = payload[size:]
            index += 1

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        try:
            tag = await reader.readexactly(1)
            if tag == b"\x01":
                self.requests.append(("stream_all", None))
                for chunk in self._chunks():
                    writer.write(chunk)
                    await writer.drain()
                    await asyncio.sleep(0)
            elif tag == b"\x02":
                sequence = (await reader.readexactly(1))[0]
                self.requests.append(("resend", sequence))
                frame = self.resend_frames.get(sequence)
                if frame is not None:
                    writer.write(frame)
                    await writer.drain()
        except asyncio.IncompleteReadError:
            pass
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(
        host="127.0.0.1",
        port=3000,
        connect_timeout_seconds=0.5,
        read_timeout_seconds=0.5
    )


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture
def connector():
    return ScriptedConnector


@pytest.fixture
def hang():
    return HANG


@pytest_asyncio.fixture
async def fake_server_factory():
    """Start FakeBetaCrewServer instances, stopped at teardown."""
    servers = []

    async def _create(**kwargs) -> FakeBetaCrewServer:
        server = FakeBetaCrewServer(**kwargs)
        await server.start()
        servers.append(server)
        return server

    yield _create

    for server in servers:
        await server.stop()
