from __future__ import annotations

import logging

import pytest
from opentelemetry.sdk.trace import TracerProvider

from jobly.core.config import Settings
from jobly.core.telemetry import TraceContextFilter, build_span_exporter, parse_otlp_headers


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("", None),
        ("api-key=secret", {"api-key": "secret"}),
        (" a = 1 ,b=x=y", {"a": "1", "b": "x=y"}),
        ("no-separator,=orphan", None),
    ],
)
def test_parse_otlp_headers(raw, expected) -> None:
    assert parse_otlp_headers(raw) == expected


def test_span_exporter_is_skipped_without_any_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)

    assert build_span_exporter(Settings(otel_exporter_otlp_endpoint=None)) is None


def test_span_exporter_uses_configured_endpoint() -> None:
    exporter = build_span_exporter(
        Settings(otel_exporter_otlp_endpoint="http://collector:4318/v1/traces", otel_exporter_otlp_headers="k=v")
    )

    assert exporter is not None
    exporter.shutdown()


def _record() -> logging.LogRecord:
    return logging.LogRecord("jobly", logging.INFO, __file__, 1, "message", None, None)


def test_trace_context_filter_outside_a_span_writes_zero_ids() -> None:
    record = _record()

    assert TraceContextFilter().filter(record) is True
    assert record.trace_id == "0" * 32
    assert record.span_id == "0" * 16


def test_trace_context_filter_copies_active_span_ids() -> None:
    tracer = TracerProvider().get_tracer(__name__)
    record = _record()

    with tracer.start_as_current_span("work") as span:
        TraceContextFilter().filter(record)
        context = span.get_span_context()

    assert record.trace_id == format(context.trace_id, "032x")
    assert record.span_id == format(context.span_id, "016x")
