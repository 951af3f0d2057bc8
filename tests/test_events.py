"""Tests for correlation IDs, log event construction and sinks."""

import io
import json
import re
from datetime import datetime

import pytest
import structlog.testing

from logme.exceptions import InvalidCodeError, LogmeError
from logme.observability.constants import CIRCULAR_MARKER, MAX_DEPTH_MARKER
from logme.observability.context import (
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from logme.observability.events import (
    ConsoleSink,
    StructlogSink,
    build_log_event,
    emit_event,
    make_serializable,
)


class TestCorrelationId:
    """Tests for correlation ID generation and context."""

    def test_default_format(self):
        assert re.fullmatch(r"log-\d+-[a-z0-9]{8}", generate_correlation_id())

    def test_custom_prefix(self):
        assert re.fullmatch(r"fetch-\d+-[a-z0-9]{8}", generate_correlation_id("fetch"))

    def test_ids_are_unique(self):
        ids = {generate_correlation_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_resolve_prefers_supplied_value(self):
        assert resolve_correlation_id("abc-123", "asgi") == "abc-123"

    @pytest.mark.parametrize("candidate", [None, "", "   "])
    def test_resolve_generates_when_missing(self, candidate):
        assert resolve_correlation_id(candidate, "asgi").startswith("asgi-")

    def test_context_roundtrip(self):
        assert get_correlation_id() == ""
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"


class TestBuildLogEvent:
    """Tests for build_log_event."""

    def test_builds_event_with_derived_level(self):
        event = build_log_event("FE.1001.02.02.02.W", "GET response", "cid-1", {"status": 404})

        assert event.code == "FE.1001.02.02.02.W"
        assert event.message == "GET response"
        assert event.level == "warn"
        assert event.correlation_id == "cid-1"
        assert event.data == {"status": 404}

    @pytest.mark.parametrize(
        ("severity", "level"), [("I", "info"), ("W", "warn"), ("E", "error"), ("D", "debug")]
    )
    def test_level_follows_severity(self, severity, level):
        event = build_log_event(f"BE.1002.01.02.01.{severity}", "msg", "cid")
        assert event.level == level

    def test_timestamp_is_iso_utc(self):
        event = build_log_event("BE.1002.01.02.01.I", "msg", "cid")

        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", event.timestamp)
        datetime.fromisoformat(event.timestamp.replace("Z", "+00:00"))

    def test_invalid_code_raises(self):
        with pytest.raises(InvalidCodeError) as exc_info:
            build_log_event("BE.1002.01.02.01", "msg", "cid")

        assert exc_info.value.code == "BE.1002.01.02.01"
        assert isinstance(exc_info.value, LogmeError)
        assert isinstance(exc_info.value, ValueError)

    def test_payload_is_not_redacted(self):
        event = build_log_event("BE.1002.01.02.01.D", "msg", "cid", {"password": "hunter2"})
        assert event.data == {"password": "hunter2"}

    def test_event_is_immutable(self):
        event = build_log_event("BE.1002.01.02.01.I", "msg", "cid")
        with pytest.raises(Exception):
            event.message = "changed"  # type: ignore[misc]

    def test_record_shape(self):
        event = build_log_event("BE.1002.01.02.01.I", "msg", "cid", {"a": 1})
        record = event.to_record()

        assert record == {
            "timestamp": event.timestamp,
            "code": "BE.1002.01.02.01.I",
            "message": "msg",
            "level": "info",
            "correlationId": "cid",
            "data": {"a": 1},
        }

    def test_record_omits_missing_data(self):
        record = build_log_event("BE.1002.01.02.01.I", "msg", "cid").to_record()
        assert "data" not in record


class TestMakeSerializable:
    """Tests for the payload serialization policy."""

    def test_cycle_is_replaced(self):
        payload: dict = {"name": "loop"}
        payload["self"] = payload

        assert make_serializable(payload) == {"name": "loop", "self": CIRCULAR_MARKER}

    def test_shared_reference_is_not_a_cycle(self):
        shared = {"x": 1}
        assert make_serializable({"a": shared, "b": shared}) == {"a": {"x": 1}, "b": {"x": 1}}

    def test_depth_is_bounded(self):
        payload: list = []
        node = payload
        for _ in range(50):
            child: list = []
            node.append(child)
            node = child

        result = make_serializable(payload, max_depth=3)
        assert result == [[[MAX_DEPTH_MARKER]]]

    def test_unknown_objects_become_strings(self):
        class Thing:
            def __str__(self) -> str:
                return "thing"

        result = make_serializable({"thing": Thing(), "raw": b"abc", 1: (1, 2)})
        assert result == {"thing": "thing", "raw": "abc", "1": [1, 2]}
        json.dumps(result)

    def test_cyclic_event_serializes(self):
        payload: dict = {}
        payload["loop"] = [payload]
        event = build_log_event("BE.1002.01.02.01.I", "msg", "cid", payload)

        assert json.loads(event.to_json())["data"] == {"loop": [CIRCULAR_MARKER]}


class TestSinks:
    """Tests for event sinks."""

    def test_console_sink_routes_by_level(self):
        out, err = io.StringIO(), io.StringIO()
        sink = ConsoleSink(stream=out, error_stream=err)

        sink(build_log_event("BE.1002.01.02.01.I", "ok", "cid"))
        sink(build_log_event("BE.1002.01.03.02.E", "boom", "cid"))

        assert json.loads(out.getvalue())["message"] == "ok"
        assert json.loads(err.getvalue())["message"] == "boom"

    def test_structlog_sink(self):
        sink = StructlogSink()
        with structlog.testing.capture_logs() as logs:
            sink(build_log_event("BE.1002.02.01.02.W", "GET response", "cid-9", {"status": 404}))

        assert len(logs) == 1
        log = logs[0]
        assert log["event"] == "GET response"
        assert log["log_level"] == "warning"
        assert log["code"] == "BE.1002.02.01.02.W"
        assert log["correlation_id"] == "cid-9"
        assert log["data"] == {"status": 404}

    def test_emit_event_swallows_sink_failures(self):
        def broken_sink(event):
            raise RuntimeError("sink down")

        with structlog.testing.capture_logs() as logs:
            emit_event(broken_sink, "BE.1002.01.02.01.I", "msg", "cid")

        assert logs[0]["event"] == "events.emit_failed"
        assert logs[0]["error"] == "sink down"

    def test_emit_event_delivers(self, events):
        emit_event(events.append, "BE.1002.01.02.01.I", "msg", "cid", {"k": "v"})

        assert len(events) == 1
        assert events[0].data == {"k": "v"}
