"""Tests for indexspine.core.logging."""

import io
import json

import pytest
import structlog

from indexspine.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    configure_logging(level="DEBUG", json_format=True, stream=stream, cache_loggers=False)
    yield stream
    clear_context()
    structlog.reset_defaults()


def _records(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestConfigureLogging:
    """Test configure_logging."""

    def test_json_output_is_ecs_compatible(self, log_stream):
        """JSON output renames keys for ECS."""
        get_logger("tests").info("document_indexed", guid="abc", terms=3)
        record = _records(log_stream)[-1]
        assert record["event"] == "document_indexed"
        assert record["guid"] == "abc"
        assert record["log.level"] == "info"
        assert record["service.name"] == "index-spine"
        assert "@timestamp" in record

    def test_level_filtering(self):
        """Events below the configured level are dropped."""
        stream = io.StringIO()
        configure_logging(level="WARNING", json_format=True, stream=stream, cache_loggers=False)
        try:
            log = get_logger("tests")
            log.info("hidden")
            log.warning("shown")
            events = [r["event"] for r in _records(stream)]
            assert events == ["shown"]
        finally:
            structlog.reset_defaults()


class TestContext:
    """Test context binding helpers."""

    def test_log_context_binds_and_unbinds(self, log_stream):
        """LogContext binds for its block only."""
        log = get_logger("tests")
        with LogContext(guid="g-1"):
            log.info("inside")
        log.info("outside")
        inside, outside = _records(log_stream)[-2:]
        assert inside["guid"] == "g-1"
        assert "guid" not in outside

    def test_bind_and_clear(self, log_stream):
        """bind_context values persist until cleared."""
        bind_context(handle="h-1")
        get_logger("tests").info("bound")
        clear_context()
        get_logger("tests").info("cleared")
        bound, cleared = _records(log_stream)[-2:]
        assert bound["handle"] == "h-1"
        assert "handle" not in cleared
