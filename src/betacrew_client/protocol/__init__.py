"""BetaCrew wire protocol: record codec, stream framing and requests."""

from .framer import StreamFramer
from .record import RECORD_SIZE, Record, Side, decode_record, encode_record
from .requests import CallType, MAX_RESEND_SEQUENCE, encode_resend, encode_stream_all

__all__ = [
    "CallType",
    "MAX_RESEND_SEQUENCE",
    "RECORD_SIZE",
    "Record",
    "Side",
    "StreamFramer",
    "decode_record",
    "encode_record",
    "encode_resend",
    "encode_stream_all",
]
