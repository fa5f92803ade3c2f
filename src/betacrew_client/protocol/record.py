"""Fixed-width BetaCrew wire record codec."""

import re
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from ..exceptions import (
    InvalidFrameLength,
    InvalidPrice,
    InvalidQuantity,
    InvalidSequence,
    InvalidSide,
    InvalidSymbol,
)

# symbol(4) + side(1) + quantity(4) + price(4) + sequence(4), big-endian
RECORD_FORMAT = ">4sciii"
RECORD_SIZE = struct.calcsize(RECORD_FORMAT)

SYMBOL_PATTERN = re.compile(r"[A-Z]{1,4}")
SYMBOL_FILL = b"\x00 "


class Side(str, Enum):
    """Buy/sell indicator, valued by its wire character."""
    BUY = "B"
    SELL = "S"


@dataclass(frozen=True)
class Record:
    """A single validated market-data update."""
    symbol: str
    side: Side
    quantity: int
    price: int
    sequence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": self.quantity,
            "price": self.price,
            "sequence": self.sequence,
        }


def decode_record(frame: bytes) -> Record:
    """
    Decode and validate one 17-byte frame.

    Checks run in a fixed order (length, symbol, side, quantity, price,
    sequence) and the first failing one is raised.

    Raises:
        InvalidFrameLength: frame is not exactly RECORD_SIZE bytes
        InvalidSymbol, InvalidSide, InvalidQuantity, InvalidPrice,
        InvalidSequence: the named field is out of contract
    """
    if len(frame) != RECORD_SIZE:
        raise InvalidFrameLength(
            f"Invalid frame length: {len(frame)} (expected {RECORD_SIZE})",
            value=len(frame)
        )

    raw_symbol, raw_side, quantity, price, sequence = struct.unpack(RECORD_FORMAT, bytes(frame))
    # Raw identity of the frame, carried on every field error
    context = {
        "sequence": sequence,
        "symbol": raw_symbol.rstrip(SYMBOL_FILL).decode("ascii", errors="replace"),
    }

    try:
        symbol = raw_symbol.rstrip(SYMBOL_FILL).decode("ascii")
    except UnicodeDecodeError:
        raise InvalidSymbol(f"Invalid symbol: {raw_symbol!r}", value=raw_symbol, **context)
    if not SYMBOL_PATTERN.fullmatch(symbol):
        raise InvalidSymbol(f"Invalid symbol: {raw_symbol!r}", value=raw_symbol, **context)

    try:
        side = Side(raw_side.decode("ascii"))
    except (UnicodeDecodeError, ValueError):
        raise InvalidSide(f"Invalid buy/sell indicator: {raw_side!r}", value=raw_side, **context)

    if quantity <= 0:
        raise InvalidQuantity(f"Invalid quantity: {quantity}", value=quantity, **context)
    if price <= 0:
        raise InvalidPrice(f"Invalid price: {price}", value=price, **context)
    if sequence <= 0:
        raise InvalidSequence(f"Invalid sequence: {sequence}", value=sequence, **context)

    return Record(
        symbol=symbol,
        side=side,
        quantity=quantity,
        price=price,
        sequence=sequence
    )


def encode_record(record: Record) -> bytes:
    """Encode a record in wire form. Short symbols are NUL-padded."""
    return struct.pack(
        RECORD_FORMAT,
        record.symbol.encode("ascii"),
        Side(record.side).value.encode("ascii"),
        record.quantity,
        record.price,
        record.sequence
    )
