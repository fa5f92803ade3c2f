"""Exception hierarchy for the BetaCrew feed client."""

from typing import Any, Optional


class BetaCrewError(Exception):
    """Base exception for all feed client errors."""
    pass


class ValidationError(BetaCrewError):
    """A wire record violates a field contract.

    ``sequence`` and ``symbol`` are the raw wire values of the rejected
    frame, when it was long enough to unpack.
    """

    field = "record"

    def __init__(
        self,
        message: str,
        value: Any = None,
        sequence: Optional[int] = None,
        symbol: Optional[str] = None
    ):
        super().__init__(message)
        self.value = value
        self.sequence = sequence
        self.symbol = symbol


class FramingError(BetaCrewError):
    """Malformed or short frame."""
    pass


class InvalidFrameLength(ValidationError, FramingError):
    field = "length"


class InvalidSymbol(ValidationError):
    field = "symbol"


class InvalidSide(ValidationError):
    field = "side"


class InvalidQuantity(ValidationError):
    field = "quantity"


class InvalidPrice(ValidationError):
    field = "price"


class InvalidSequence(ValidationError):
    field = "sequence"


class RequestEncodingError(BetaCrewError):
    """An outbound request cannot be represented on the wire."""
    pass


class TransportError(BetaCrewError):
    """Connect, read or write failure (timeouts included)."""

    def __init__(self, message: str, phase: str, sequence: Optional[int] = None):
        super().__init__(message)
        self.phase = phase
        self.sequence = sequence


class EmptySequenceSet(BetaCrewError):
    """Gap detection was asked to run on zero sequences."""
    pass


class ConfigurationError(BetaCrewError):
    """Settings file is missing required structure."""
    pass
