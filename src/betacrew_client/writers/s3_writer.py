"""S3 output for the final record set."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence
from dataclasses import dataclass

from ..config.aws_config import AWSClientManager
from ..config.settings import AWSConfig
from ..protocol.record import Record
from ..utils.retry import retry_with_backoff
from .json_writer import serialize_records

logger = logging.getLogger(__name__)


@dataclass
class S3WriteStats:
    """Statistics for S3 write operations."""
    files_written: int = 0
    records_written: int = 0
    bytes_written: int = 0
    errors: int = 0
    last_write_time: Optional[float] = None


class S3RecordWriter:
    """
    Writes the sorted record set to S3 as one JSON document.

    Objects are date-partitioned:
    ``{prefix}/yyyy=YYYY/mm=MM/dd=DD/betacrew_output_YYYYmmdd_HHMMSS.json``
    """

    def __init__(self, aws_client_manager: AWSClientManager, config: AWSConfig, indent: Optional[int] = 2):
        self.aws_client_manager = aws_client_manager
        self.config = config
        self.indent = indent
        self.stats = S3WriteStats()

    async def write(self, records: Sequence[Record], timestamp: Optional[datetime] = None) -> str:
        timestamp = timestamp or datetime.now(timezone.utc)
        s3_key = self._build_s3_key(timestamp)
        content_bytes = serialize_records(records, self.indent).encode('utf-8')

        await self._put_object(s3_key, content_bytes, len(records))

        uri = f"s3://{self.config.s3_bucket}/{s3_key}"
        logger.info(f"Output written to {uri} ({len(records)} records, {len(content_bytes)} bytes)")
        return uri

    def _build_s3_key(self, timestamp: datetime) -> str:
        year = timestamp.strftime("%Y")
        month = timestamp.strftime("%m")
        day = timestamp.strftime("%d")
        filename = f"betacrew_output_{timestamp.strftime('%Y%m%d_%H%M%S')}.json"

        return f"{self.config.s3_prefix}/yyyy={year}/mm={month}/dd={day}/{filename}"

    @retry_with_backoff(
        max_attempts=3,
        initial_delay=1.0,
        max_delay=10.0,
        exceptions=(Exception,)
    )
    async def _put_object(self, s3_key: str, content_bytes: bytes, record_count: int) -> None:
        s3_client = self.aws_client_manager.s3_client

        try:
            await asyncio.get_running_loop().run_in_executor(
                None,
                lambda: s3_client.put_object(
                    Bucket=self.config.s3_bucket,
                    Key=s3_key,
                    Body=content_bytes,
                    ContentType='application/json',
                    Metadata={
                        'record_count': str(record_count),
                        'ingest_timestamp': str(int(datetime.now(timezone.utc).timestamp())),
                    }
                )
            )
        except Exception as e:
            logger.error(f"Failed to write to S3 key {s3_key}: {e}")
            self.stats.errors += 1
            raise

        self.stats.files_written += 1
        self.stats.records_written += record_count
        self.stats.bytes_written += len(content_bytes)
        self.stats.last_write_time = datetime.now(timezone.utc).timestamp()

    def get_stats(self) -> Dict[str, Any]:
        return {
            'files_written': self.stats.files_written,
            'records_written': self.stats.records_written,
            'bytes_written': self.stats.bytes_written,
            'errors': self.stats.errors,
            'last_write_time': self.stats.last_write_time,
        }
