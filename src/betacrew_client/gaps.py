"""Gap detection over the received sequence space."""

from typing import Iterable, List

from .exceptions import EmptySequenceSet


def find_missing_sequences(sequences: Iterable[int]) -> List[int]:
    """
    Return every sequence in ``[1, max(sequences)]`` that was not received.

    Raises:
        EmptySequenceSet: no sequences were given, so there is no maximum
    """
    seen = set(sequences)
    if not seen:
        raise EmptySequenceSet("Cannot detect gaps without any received sequences")

    max_sequence = max(seen)
    return [seq for seq in range(1, max_sequence + 1) if seq not in seen]
