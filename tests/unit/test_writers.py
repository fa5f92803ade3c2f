"""Tests for output sinks."""

import json
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from betacrew_client.config.aws_config import AWSClientManager
from betacrew_client.config.settings import AWSConfig, FeedClientSettings
from betacrew_client.protocol.record import Record, Side
from betacrew_client.writers import JsonFileWriter, create_writer, serialize_records
from betacrew_client.writers.s3_writer import S3RecordWriter


@pytest.fixture
def sample_records():
    return [
        Record(symbol="AAPL", side=Side.BUY, quantity=50, price=100, sequence=1),
        Record(symbol="MSFT", side=Side.SELL, quantity=30, price=98, sequence=2),
    ]


class TestJsonFileWriter:

    def test_serialize_records_layout(self, sample_records):
        text = serialize_records(sample_records)

        assert json.loads(text) == [
            {"symbol": "AAPL", "side": "B", "quantity": 50, "price": 100, "sequence": 1},
            {"symbol": "MSFT", "side": "S", "quantity": 30, "price": 98, "sequence": 2},
        ]
        assert '\n  {\n    "symbol": "AAPL"' in text

    @pytest.mark.asyncio
    async def test_write_creates_parent_directories(self, tmp_path, sample_records):
        path = tmp_path / "out" / "betacrew_output.json"
        writer = JsonFileWriter(str(path))

        location = await writer.write(sample_records)

        assert location == str(path)
        assert [r["sequence"] for r in json.loads(path.read_text())] == [1, 2]

    @pytest.mark.asyncio
    async def test_write_empty(self, tmp_path):
        path = tmp_path / "empty.json"

        await JsonFileWriter(str(path), indent=None).write([])

        assert path.read_text() == "[]"


class TestS3RecordWriter:

    @pytest.fixture
    def mock_s3_client(self):
        client = Mock()
        client.put_object = Mock(return_value={})
        return client

    @pytest.fixture
    def s3_writer(self, mock_s3_client):
        manager = Mock(spec=AWSClientManager)
        manager.s3_client = mock_s3_client
        return S3RecordWriter(manager, AWSConfig(s3_bucket="feeds", s3_prefix="betacrew"))

    @pytest.mark.asyncio
    async def test_write_puts_partitioned_object(self, s3_writer, mock_s3_client, sample_records):
        timestamp = datetime(2024, 3, 9, 14, 5, 7, tzinfo=timezone.utc)

        uri = await s3_writer.write(sample_records, timestamp=timestamp)

        key = "betacrew/yyyy=2024/mm=03/dd=09/betacrew_output_20240309_140507.json"
        assert uri == f"s3://feeds/{key}"
        kwargs = mock_s3_client.put_object.call_args.kwargs
        assert kwargs['Bucket'] == "feeds"
        assert kwargs['Key'] == key
        assert kwargs['ContentType'] == "application/json"
        assert kwargs['Metadata']['record_count'] == "2"
        assert [r["symbol"] for r in json.loads(kwargs['Body'])] == ["AAPL", "MSFT"]

        stats = s3_writer.get_stats()
        assert stats['files_written'] == 1
        assert stats['records_written'] == 2
        assert stats['errors'] == 0


class TestCreateWriter:

    def test_file_writer_by_default(self):
        writer = create_writer(FeedClientSettings(output={'path': 'x.json'}))

        assert isinstance(writer, JsonFileWriter)
        assert str(writer.path) == "x.json"

    def test_s3_writer(self):
        writer = create_writer(FeedClientSettings(output={'type': 's3'}, aws={'s3_bucket': 'feeds'}))

        assert isinstance(writer, S3RecordWriter)
        assert writer.config.s3_bucket == "feeds"
