"""BetaCrew exchange TCP client: stream-all and resend exchanges."""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Protocol

from ..config.settings import ServerConfig
from ..exceptions import TransportError, ValidationError
from ..protocol.framer import StreamFramer
from ..protocol.record import Record, decode_record
from ..protocol.requests import encode_resend, encode_stream_all
from ..utils.logging import log_with_context

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

PHASE_STREAM_ALL = "stream_all"
PHASE_RESEND = "resend"


class Connection(Protocol):
    """Bidirectional byte stream to the feed server.

    ``read`` returns an empty bytes object once the peer has closed.
    """

    async def write(self, data: bytes) -> None: ...

    async def read(self, n: int) -> bytes: ...

    async def close(self) -> None: ...


ConnectionFactory = Callable[[str, int], Awaitable[Connection]]


class TcpConnection:
    """Connection backed by asyncio streams."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer

    @classmethod
    async def open(cls, host: str, port: int) -> "TcpConnection":
        reader, writer = await asyncio.open_connection(host, port)
        return cls(reader, writer)

    async def write(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()

    async def read(self, n: int) -> bytes:
        return await self.reader.read(n)

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            # Peer already tore the socket down
            logger.debug(f"Ignoring error while closing connection: {e}")


class ExchangeState(Enum):
    """Lifecycle of one stream-all or resend exchange."""
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    AWAITING_ONE = "awaiting_one"
    CLOSED = "closed"


class BetaCrewFeedClient:
    """
    Client for the BetaCrew exchange feed server.

    Each exchange opens its own connection: ``stream_all`` keeps one open
    until the server closes it, ``resend`` opens a fresh one per sequence and
    closes it after the first response. Connections are never reused.
    """

    def __init__(
        self,
        config: ServerConfig,
        connection_factory: Optional[ConnectionFactory] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config
        self._connection_factory = connection_factory or TcpConnection.open
        self.logger = logger or logging.getLogger(__name__)
        self.state = ExchangeState.IDLE

        self.stats = {
            'connections_opened': 0,
            'bytes_received': 0,
            'frames_received': 0,
            'records_accepted': 0,
            'decode_errors': 0,
            'resend_requests': 0,
            'last_message_time': None,
        }

    @property
    def address(self) -> str:
        return f"{self.config.host}:{self.config.port}"

    async def stream_all(self) -> List[Record]:
        """
        Request every available record and collect them until the server
        closes the connection.

        Invalid frames are logged and dropped. A trailing partial frame at
        close is discarded.

        Raises:
            TransportError: connect, write or read failed, or a read timed out
        """
        records: List[Record] = []
        framer = StreamFramer()

        try:
            async with self._connection(PHASE_STREAM_ALL) as conn:
                await self._write(conn, encode_stream_all(), PHASE_STREAM_ALL)
                self.state = ExchangeState.STREAMING

                while True:
                    chunk = await self._read(conn, PHASE_STREAM_ALL)
                    if not chunk:
                        break

                    framer.feed(chunk)
                    for frame in framer.drain():
                        self.stats['frames_received'] += 1
                        record = self._accept_frame(frame, PHASE_STREAM_ALL)
                        if record is not None:
                            records.append(record)
        finally:
            self.state = ExchangeState.CLOSED

        self.logger.info("Server closed the connection")
        if framer.pending:
            self.logger.warning(
                f"Discarding {framer.pending} trailing bytes of an incomplete frame"
            )
        self.logger.info(f"Stream-all complete: {len(records)} valid records received")
        return records

    async def resend(self, sequence: int) -> Record:
        """
        Ask the server to retransmit one record.

        The first chunk received is decoded as exactly one record. The
        connection is closed whatever the outcome.

        Raises:
            RequestEncodingError: sequence cannot be encoded (before any I/O)
            ValidationError: the response is not a valid record
            TransportError: connection or read failure, timeout, or the server
                closed without responding
        """
        request = encode_resend(sequence)
        self.stats['resend_requests'] += 1

        try:
            async with self._connection(PHASE_RESEND, sequence) as conn:
                await self._write(conn, request, PHASE_RESEND, sequence)
                self.state = ExchangeState.AWAITING_ONE

                chunk = await self._read(conn, PHASE_RESEND, sequence)
                if not chunk:
                    raise TransportError(
                        f"Server closed the connection before resending packet {sequence}",
                        phase=PHASE_RESEND,
                        sequence=sequence
                    )

                self.stats['frames_received'] += 1
                try:
                    record = decode_record(chunk)
                except ValidationError:
                    self.stats['decode_errors'] += 1
                    raise
        finally:
            self.state = ExchangeState.CLOSED

        self.stats['records_accepted'] += 1
        if record.sequence != sequence:
            self.logger.warning(
                f"Resend for sequence {sequence} returned sequence {record.sequence}"
            )
        self.logger.info(f"Received resent packet: {json.dumps(record.to_dict())}")
        return record

    def _accept_frame(self, frame: bytes, phase: str) -> Optional[Record]:
        try:
            record = decode_record(frame)
        except ValidationError as e:
            self.stats['decode_errors'] += 1
            log_with_context(
                self.logger,
                logging.ERROR,
                f"Error processing packet (sequence {e.sequence}, symbol {e.symbol!r}, "
                f"field {e.field}): {e}",
                phase=phase,
                sequence=e.sequence,
                symbol=e.symbol,
                field=e.field,
                value=e.value
            )
            return None

        self.stats['records_accepted'] += 1
        self.logger.info(f"Received packet: {json.dumps(record.to_dict())}")
        return record

    @asynccontextmanager
    async def _connection(self, phase: str, sequence: Optional[int] = None) -> AsyncIterator[Connection]:
        self.state = ExchangeState.CONNECTING
        try:
            conn = await asyncio.wait_for(
                self._connection_factory(self.config.host, self.config.port),
                timeout=self.config.connect_timeout_seconds
            )
        except asyncio.TimeoutError:
            raise TransportError(
                f"Timed out connecting to BetaCrew server at {self.address}",
                phase=phase,
                sequence=sequence
            )
        except OSError as e:
            raise TransportError(
                f"Failed to connect to BetaCrew server at {self.address}: {e}",
                phase=phase,
                sequence=sequence
            ) from e

        self.stats['connections_opened'] += 1
        self.logger.info(f"Connected to BetaCrew server at {self.address}")
        try:
            yield conn
        finally:
            await conn.close()
            self.logger.debug(f"Disconnected from BetaCrew server ({phase})")

    async def _write(self, conn: Connection, data: bytes, phase: str, sequence: Optional[int] = None):
        try:
            await asyncio.wait_for(conn.write(data), timeout=self.config.read_timeout_seconds)
        except asyncio.TimeoutError:
            raise TransportError(
                f"Timed out sending {phase} request", phase=phase, sequence=sequence
            )
        except OSError as e:
            raise TransportError(
                f"Socket error while sending {phase} request: {e}", phase=phase, sequence=sequence
            ) from e

    async def _read(self, conn: Connection, phase: str, sequence: Optional[int] = None) -> bytes:
        try:
            chunk = await asyncio.wait_for(
                conn.read(READ_CHUNK_SIZE),
                timeout=self.config.read_timeout_seconds
            )
        except asyncio.TimeoutError:
            raise TransportError(
                f"No data from server for {self.config.read_timeout_seconds}s during {phase}",
                phase=phase,
                sequence=sequence
            )
        except OSError as e:
            raise TransportError(
                f"Socket error during {phase}: {e}", phase=phase, sequence=sequence
            ) from e

        if chunk:
            self.stats['bytes_received'] += len(chunk)
            self.stats['last_message_time'] = time.time()
        return chunk

    def get_stats(self) -> Dict[str, Any]:
        """Get connection and decoding statistics."""
        return {
            **self.stats,
            'state': self.state.value,
            'server': self.address,
        }
