import logging

import pytest

from talentlist.core.config import Settings
from talentlist.core.telemetry import TraceContextFilter, configure_api_logging, setup_api_telemetry


def test_exporter_headers_are_read_as_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TL_OTEL_EXPORTER_OTLP_HEADERS", '{"authorization": "Bearer abc"}')

    assert Settings().otel_exporter_otlp_headers == {"authorization": "Bearer abc"}
    monkeypatch.delenv("TL_OTEL_EXPORTER_OTLP_HEADERS")
    assert Settings().otel_exporter_otlp_headers == {}


def test_disabled_telemetry_is_a_no_op() -> None:
    assert setup_api_telemetry(app=None, settings=Settings(otel_enabled=False)) is None  # type: ignore[arg-type]


def test_log_records_carry_zero_trace_ids_outside_spans() -> None:
    record = logging.LogRecord("talentlist", logging.INFO, __file__, 1, "msg", (), None)

    assert TraceContextFilter().filter(record) is True
    assert record.trace_id == "0" * 32
    assert record.span_id == "0" * 16


def test_configure_logging_adds_filter_once() -> None:
    configure_api_logging()
    configure_api_logging()

    for handler in logging.getLogger().handlers:
        assert sum(isinstance(existing, TraceContextFilter) for existing in handler.filters) == 1
