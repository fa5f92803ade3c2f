"""Gap recovery: resend every missing sequence and produce the final record set."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .clients.feed_client import BetaCrewFeedClient
from .config.settings import RetryConfig
from .exceptions import RequestEncodingError, TransportError, ValidationError
from .gaps import find_missing_sequences
from .protocol.record import Record
from .utils.logging import log_with_context
from .utils.retry import exponential_backoff
from .writers import RecordWriter

logger = logging.getLogger(__name__)


@dataclass
class RecoveryReport:
    """Outcome of one recovery pass."""
    streamed: int = 0
    requested: List[int] = field(default_factory=list)
    recovered: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)
    output_location: Optional[str] = None

    @property
    def complete(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "streamed": self.streamed,
            "requested": list(self.requested),
            "recovered": list(self.recovered),
            "failed": dict(self.failed),
            "output_location": self.output_location,
        }


class RecoveryOrchestrator:
    """
    Drives a full run: stream everything, fill gaps one resend at a time,
    sort by sequence and hand the result to the writer.

    Resends run strictly one after another. A failed resend leaves that
    sequence missing and recovery moves on; only stream-all transport
    failures and an empty stream are fatal.
    """

    def __init__(
        self,
        client: BetaCrewFeedClient,
        writer: Optional[RecordWriter] = None,
        retry_config: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.writer = writer
        self.retry_config = retry_config or RetryConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.last_report: Optional[RecoveryReport] = None

    async def run(self) -> List[Record]:
        """
        Execute stream-all, recovery and output.

        Fatal errors propagate before anything is written.

        Raises:
            TransportError: the stream-all exchange failed
            EmptySequenceSet: stream-all produced no valid records
        """
        records = await self.client.stream_all()
        final_records = await self.recover(records)

        if self.writer is not None:
            location = await self.writer.write(final_records)
            self.last_report.output_location = location

        return final_records

    async def recover(self, records: List[Record]) -> List[Record]:
        """
        Resend each missing sequence in ascending order and merge the results.

        ``records`` is extended in place with every recovered record; the
        returned list is a copy sorted by sequence.

        Raises:
            EmptySequenceSet: ``records`` is empty
        """
        report = RecoveryReport(streamed=len(records))
        self.last_report = report

        missing = find_missing_sequences(record.sequence for record in records)
        report.requested = list(missing)
        self.logger.info(f"Requesting {len(missing)} missing packets")

        for sequence in missing:
            record = await self._resend_one(sequence, report)
            if record is not None:
                records.append(record)
                report.recovered.append(sequence)

        if report.failed:
            self.logger.warning(
                f"Recovery incomplete: {len(report.recovered)}/{len(missing)} recovered, "
                f"still missing {sorted(report.failed)}"
            )
        else:
            self.logger.info(f"Recovery complete: {len(report.recovered)}/{len(missing)} recovered")

        return sorted(records, key=lambda r: r.sequence)

    async def _resend_one(self, sequence: int, report: RecoveryReport) -> Optional[Record]:
        async def _attempt():
            return await self.client.resend(sequence)

        try:
            record = await exponential_backoff(
                _attempt,
                max_attempts=self.retry_config.max_attempts,
                initial_delay=self.retry_config.initial_backoff_seconds,
                max_delay=self.retry_config.max_backoff_seconds,
                backoff_factor=self.retry_config.backoff_multiplier,
                jitter=self.retry_config.jitter,
                exceptions=(TransportError,),
                log=self.logger
            )
        except (ValidationError, RequestEncodingError, TransportError) as e:
            report.failed[sequence] = str(e)
            log_with_context(
                self.logger,
                logging.ERROR,
                f"Failed to resend packet {sequence}: {e}",
                sequence=sequence,
                error_type=type(e).__name__,
                field=getattr(e, "field", None)
            )
            return None

        if record.sequence != sequence:
            # Merging it would duplicate or misplace a record and leave the gap open
            report.failed[sequence] = f"Server returned sequence {record.sequence}"
            log_with_context(
                self.logger,
                logging.ERROR,
                f"Failed to resend packet {sequence}: server returned sequence {record.sequence}",
                sequence=sequence,
                returned_sequence=record.sequence,
                symbol=record.symbol,
                error_type="SequenceMismatch"
            )
            return None

        log_with_context(
            self.logger,
            logging.INFO,
            f"Recovered packet {sequence}",
            sequence=sequence,
            symbol=record.symbol
        )
        return record
