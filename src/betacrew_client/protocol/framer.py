"""Reassembly of fixed-size frames from an arbitrary byte stream."""

from typing import Iterator

from .record import RECORD_SIZE


class StreamFramer:
    """
    Accumulates raw bytes and slices out complete fixed-size frames.

    The transport gives no message boundaries: one frame may arrive split
    across several reads, and one read may carry several frames. Bytes are
    kept in a growable buffer with a read cursor; consumed bytes are only
    dropped once the cursor passes ``compact_threshold`` or the buffer is
    fully consumed.
    """

    def __init__(self, frame_size: int = RECORD_SIZE, compact_threshold: int = 4096):
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")
        self.frame_size = frame_size
        self.compact_threshold = compact_threshold
        self._buffer = bytearray()
        self._cursor = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet drained."""
        return len(self._buffer) - self._cursor

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def drain(self) -> Iterator[bytes]:
        """Yield every complete frame currently buffered, oldest first."""
        while self.pending >= self.frame_size:
            start = self._cursor
            self._cursor += self.frame_size
            frame = bytes(self._buffer[start:self._cursor])
            self._compact()
            yield frame

    def _compact(self) -> None:
        if self._cursor == len(self._buffer):
            self._buffer.clear()
            self._cursor = 0
        elif self._cursor >= self.compact_threshold:
            del self._buffer[:self._cursor]
            self._cursor = 0
