import logging

from fastapi import Request

from ledger_ingestion.observability import (
    bind_request_context,
    current_request_id,
    ensure_request_id,
    hash_payload,
    reset_request_context,
)
from ledger_ingestion.observability.telemetry import _TelemetryLogFilter


def test_request_context_is_bound_and_reset():
    assert current_request_id() is None
    token = bind_request_context("req-1")
    try:
        assert current_request_id() == "req-1"
    finally:
        reset_request_context(token)
    assert current_request_id() is None


def test_log_filter_stamps_service_and_request_id():
    record = logging.LogRecord("ingestion", logging.INFO, __file__, 1, {"event": "x"}, None, None)
    token = bind_request_context("req-2")
    try:
        assert _TelemetryLogFilter("ledger-ingestion-service", traces_enabled=False).filter(record)
    finally:
        reset_request_context(token)

    assert record.service_name == "ledger-ingestion-service"
    assert record.request_id == "req-2"
    assert record.trace_id is None


def test_hash_payload_is_stable_across_types():
    assert hash_payload("abc") == hash_payload(b"abc")
    assert hash_payload(None) != hash_payload(b"")
    assert len(hash_payload(b"abc")) == 64


def _request(headers=()):
    return Request({"type": "http", "headers": [(name.encode(), value.encode()) for name, value in headers]})


def test_inbound_request_id_is_reused_and_remembered():
    request = _request([("x-request-id", "abc-123")])

    assert ensure_request_id(request) == "abc-123"
    assert request.state.request_id == "abc-123"


def test_missing_request_id_is_minted_once_per_request():
    request = _request()

    minted = ensure_request_id(request)

    assert minted
    assert ensure_request_id(request) == minted
    assert ensure_request_id(None) != minted
