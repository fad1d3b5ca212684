"""
Unit tests for the logging subsystem: context binding, record enrichment,
JSON output and explicit setup.
"""

import json
import logging

import pytest

from funtan.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    LogSettings,
    setup_logging,
    shutdown_logging,
)

pytestmark = pytest.mark.unit


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("funtan.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    ContextFilter().filter(record)
    return record


def _settings(tmp_path, to_file: bool) -> LogSettings:
    return LogSettings(
        level=logging.DEBUG,
        as_json=True,
        colored=False,
        to_file=to_file,
        logs_dir=tmp_path / "logs",
        environment="testing",
    )


# ============================================================================
# CONTEXT
# ============================================================================


class TestLogContext:
    def test_unbound_fields_are_placeholders(self):
        record = _record()

        assert record.player_id == "-"
        assert record.server_id == "-"
        assert record.operation == "-"

    def test_bound_fields_reach_records(self):
        with LogContext(player_id=1001, operation="hunt"):
            record = _record()

        assert record.player_id == "1001"
        assert record.operation == "hunt"
        assert record.correlation_id != "-"

    def test_nested_context_inherits_outer_fields(self):
        with LogContext(server_id="guild-1", correlation_id="abc123"):
            with LogContext(operation="add_server_admin"):
                inner = _record()
            outer = _record()

        assert inner.server_id == "guild-1"
        assert inner.operation == "add_server_admin"
        assert inner.correlation_id == "abc123"
        assert outer.operation == "-"

    def test_context_is_reset_on_exit(self):
        with LogContext(player_id="1001"):
            pass

        assert _record().player_id == "-"

    def test_explicit_extra_wins(self):
        with LogContext(operation="hunt"):
            record = _record(operation="increment_kills")

        assert record.operation == "increment_kills"

    async def test_async_context(self):
        async with LogContext(player_id="2002"):
            record = _record()

        assert record.player_id == "2002"


# ============================================================================
# FORMATTING
# ============================================================================


class TestJSONFormatter:
    def test_context_and_extra_are_separated(self):
        with LogContext(player_id="1001", operation="claim_daily"):
            record = _record(reward=50)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["msg"] == "hello x"
        assert payload["context"]["player_id"] == "1001"
        assert payload["context"]["operation"] == "claim_daily"
        assert "server_id" not in payload["context"]
        assert payload["extra"] == {"reward": 50}


# ============================================================================
# SETUP
# ============================================================================


class TestSetup:
    @pytest.fixture(autouse=True)
    def _fresh_logging(self):
        shutdown_logging()
        yield
        shutdown_logging()

    def test_setup_is_idempotent(self, tmp_path):
        assert setup_logging(_settings(tmp_path, to_file=False)) is True
        assert setup_logging(_settings(tmp_path, to_file=False)) is False

    def test_no_log_directory_without_file_output(self, tmp_path):
        setup_logging(_settings(tmp_path, to_file=False))
        assert not (tmp_path / "logs").exists()

    def test_file_output(self, tmp_path):
        setup_logging(_settings(tmp_path, to_file=True))
        logging.getLogger("funtan.test").info("written", extra={"bronze": 5})
        shutdown_logging()

        lines = (tmp_path / "logs" / "funtan.json.log").read_text(encoding="utf-8").splitlines()
        written = [json.loads(line) for line in lines if '"written"' in line]

        assert written[0]["extra"] == {"bronze": 5}

    def test_handler_is_detached_on_shutdown(self, tmp_path):
        setup_logging(_settings(tmp_path, to_file=False))
        shutdown_logging()

        assert logging.getLogger("funtan").handlers == []
