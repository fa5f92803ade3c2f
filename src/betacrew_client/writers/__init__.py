"""Output sinks for the final, sequence-ordered record set."""

from typing import Protocol, Sequence

from ..config.settings import FeedClientSettings
from ..protocol.record import Record
from .json_writer import JsonFileWriter, serialize_records


class RecordWriter(Protocol):
    async def write(self, records: Sequence[Record]) -> str: ...


def create_writer(settings: FeedClientSettings) -> RecordWriter:
    """Build the output sink named by ``settings.output.type``."""
    if settings.output.type == "s3":
        from ..config.aws_config import AWSClientManager
        from .s3_writer import S3RecordWriter

        return S3RecordWriter(
            AWSClientManager(settings.aws),
            settings.aws,
            indent=settings.output.indent
        )
    return JsonFileWriter(settings.output.path, indent=settings.output.indent)


__all__ = ["JsonFileWriter", "RecordWriter", "create_writer", "serialize_records"]
