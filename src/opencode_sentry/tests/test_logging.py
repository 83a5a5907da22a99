"""Tests for structured logging."""

from __future__ import annotations

import io

import orjson
import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider

from opencode_sentry.logging import configure_logging, get_logger, log_context


def lines(out: io.StringIO) -> list[dict[str, object]]:
    return [orjson.loads(line) for line in out.getvalue().splitlines()]


class TestJson:
    def test_entry_shape(self, log_output: io.StringIO) -> None:
        get_logger("opencode_sentry.router").info("breadcrumb recorded", category="tool")

        (entry,) = lines(log_output)
        assert entry["level"] == "info"
        assert entry["event"] == "breadcrumb recorded"
        assert entry["logger"] == "opencode_sentry.router"
        assert entry["category"] == "tool"
        assert "timestamp" in entry
        assert "trace_id" not in entry

    def test_bind_and_log_context(self, log_output: io.StringIO) -> None:
        log = get_logger("x").bind(session_id="ses_1")

        with log_context(hook="event"):
            log.debug("routed")
        log.debug("after")

        inside, after = lines(log_output)
        assert inside["session_id"] == after["session_id"] == "ses_1"
        assert inside["hook"] == "event"
        assert "hook" not in after

    def test_includes_active_trace(self, log_output: io.StringIO) -> None:
        tracer = TracerProvider().get_tracer("test")

        with tracer.start_as_current_span("work") as span:
            get_logger().warning("inside span")

        (entry,) = lines(log_output)
        assert entry["trace_id"] == trace.format_trace_id(span.get_span_context().trace_id)
        assert entry["span_id"] == trace.format_span_id(span.get_span_context().span_id)

    def test_exception_carries_traceback(self, log_output: io.StringIO) -> None:
        try:
            raise ValueError("bad payload")
        except ValueError:
            get_logger().exception("handler failed")

        (entry,) = lines(log_output)
        assert entry["level"] == "error"
        assert "ValueError: bad payload" in entry["exc_info"]


class TestConfiguration:
    def test_level_filters(self) -> None:
        out = io.StringIO()
        configure_logging(format="json", level="WARNING", output=out)
        log = get_logger()

        log.debug("quiet")
        log.info("quiet")
        log.warning("loud")

        assert [e["event"] for e in lines(out)] == ["loud"]

    def test_console_format(self) -> None:
        out = io.StringIO()
        configure_logging(format="console", level="INFO", output=out, colors=False)

        get_logger().info("sentry initialized", environment="production", traces_sample_rate=1.0)

        text = out.getvalue()
        assert "[info] sentry initialized" in text
        assert 'environment="production"' in text
        assert "traces_sample_rate=1.0" in text

    def test_none_is_silent(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(format="none", level="DEBUG")

        get_logger().error("dropped")

        assert capsys.readouterr().err == ""

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown format"):
            configure_logging(format="xml")
