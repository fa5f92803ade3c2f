"""Outbound request encoding. Requests carry no length prefix; the
server infers the call type from the leading tag byte."""

from enum import IntEnum

from ..exceptions import RequestEncodingError

MAX_RESEND_SEQUENCE = 0xFF


class CallType(IntEnum):
    STREAM_ALL = 1
    RESEND = 2


def encode_stream_all() -> bytes:
    return bytes([CallType.STREAM_ALL])


def encode_resend(sequence: int) -> bytes:
    """
    Encode a resend request for one sequence number.

    The sequence travels as a single unsigned byte, so only 0..255 can be
    requested. Anything else raises instead of being truncated.

    Raises:
        RequestEncodingError: sequence is not an int in 0..255
    """
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise RequestEncodingError(f"Resend sequence must be an int, got {sequence!r}")
    if not 0 <= sequence <= MAX_RESEND_SEQUENCE:
        raise RequestEncodingError(
            f"Resend sequence {sequence} does not fit in one byte (0-{MAX_RESEND_SEQUENCE})"
        )
    return bytes([CallType.RESEND, sequence])
