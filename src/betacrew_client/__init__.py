"""
BetaCrew feed client.

Fetches the complete record feed from a BetaCrew exchange server over TCP,
detects missing sequence numbers, recovers them through individual resend
requests and writes the sequence-ordered result.
"""

from .clients.feed_client import BetaCrewFeedClient
from .exceptions import (
    BetaCrewError,
    EmptySequenceSet,
    FramingError,
    RequestEncodingError,
    TransportError,
    ValidationError,
)
from .gaps import find_missing_sequences
from .protocol.record import Record, Side
from .recovery import RecoveryOrchestrator, RecoveryReport

__version__ = "1.0.0"

__all__ = [
    "BetaCrewError",
    "BetaCrewFeedClient",
    "EmptySequenceSet",
    "FramingError",
    "Record",
    "RecoveryOrchestrator",
    "RecoveryReport",
    "RequestEncodingError",
    "Side",
    "TransportError",
    "ValidationError",
    "find_missing_sequences",
]
