"""Tests for logging setup and formatters."""

import json
import logging

import pytest

from betacrew_client.config.settings import LoggingConfig
from betacrew_client.utils.logging import (
    JSONFormatter,
    TextFormatter,
    log_error_with_context,
    log_with_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("betacrew.test", logging.ERROR, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_formatter_includes_context(self):
        output = json.loads(JSONFormatter().format(_record("Dropped frame", ctx_sequence=2, service="svc")))

        assert output['level'] == "ERROR"
        assert output['logger'] == "betacrew.test"
        assert output['message'] == "Dropped frame"
        assert output['ctx_sequence'] == 2
        assert output['service'] == "svc"
        assert output['timestamp'].endswith("Z")

    def test_text_formatter(self):
        line = TextFormatter(use_colors=False).format(_record("Fatal error: reset"))

        assert line.endswith("[ERROR] betacrew.test: Fatal error: reset")


class TestSetupLogging:

    def test_console_and_file_handlers(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "client.log"

        handlers = setup_logging(LoggingConfig(level="DEBUG", format="json", file=str(log_file)), "svc")
        log_with_context(logging.getLogger("betacrew.test"), logging.INFO, "Recovered packet 3", sequence=3)
        for handler in handlers:
            handler.flush()

        assert len(handlers) == 2
        assert restore_root_logger.level == logging.DEBUG
        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        recovered = [line for line in lines if line['message'] == "Recovered packet 3"]
        assert recovered[0]['ctx_sequence'] == 3
        assert recovered[0]['service'] == "svc"

    def test_console_only(self, restore_root_logger):
        handlers = setup_logging(LoggingConfig(file=None, output="stderr"))

        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)


class TestContextHelpers:

    def test_log_error_with_context(self, caplog):
        logger = logging.getLogger("betacrew.test")

        with caplog.at_level(logging.DEBUG, logger="betacrew.test"):
            log_error_with_context(logger, ValueError("bad input"), "service run", config_file="local.yaml")

        error = caplog.records[0]
        assert error.getMessage() == "Error in service run: bad input"
        assert error.ctx_error_type == "ValueError"
        assert error.ctx_config_file == "local.yaml"
        assert caplog.records[1].exc_info is not None
        assert error.funcName == "test_log_error_with_context"

    def test_log_with_context_reports_call_site(self, caplog):
        logger = logging.getLogger("betacrew.test")

        with caplog.at_level(logging.INFO, logger="betacrew.test"):
            log_with_context(logger, logging.INFO, "Recovered packet 7", sequence=7)

        record = caplog.records[0]
        assert record.funcName == "test_log_with_context_reports_call_site"
        assert record.module == "test_logging"
        assert record.ctx_sequence == 7

        output = json.loads(JSONFormatter().format(record))
        assert output['function'] == "test_log_with_context_reports_call_site"
