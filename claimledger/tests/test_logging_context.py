"""Tests for structured logging and request_id propagation."""

import json
import logging
from datetime import date
from decimal import Decimal

from claimledger.core.logging import (
    JsonFormatter,
    PrettyFormatter,
    bind_request_id,
    get_request_id,
    log_event,
    request_id_ctx_var,
)


def _record(msg="ledger.claimed", **extra):
    record = logging.LogRecord("claimledger", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    payload = json.loads(JsonFormatter().format(_record(request_id="rid-1", reward=10, day="2026-10-19")))

    assert payload["message"] == "ledger.claimed"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "rid-1"
    assert payload["reward"] == 10
    assert payload["day"] == "2026-10-19"
    assert payload["timestamp"].endswith("Z")


def test_pretty_formatter_shows_request_id():
    line = PrettyFormatter().format(_record(request_id="rid-2", streak=3))
    assert "[rid=rid-2]" in line
    assert "ledger.claimed" in line
    assert "streak=3" in line


def test_log_event_uses_context_request_id(caplog):
    token = request_id_ctx_var.set("rid-ctx")
    try:
        with caplog.at_level(logging.INFO, logger="claimledger"):
            log_event("info", "ledger.share_bonus", event_type="ledger.share_bonus", extra={"bonus": 5})
    finally:
        request_id_ctx_var.reset(token)

    record = next(r for r in caplog.records if r.getMessage() == "ledger.share_bonus")
    assert record.request_id == "rid-ctx"
    assert record.event_type == "ledger.share_bonus"
    assert record.bonus == "5"


def test_log_event_truncates_long_values(caplog):
    with caplog.at_level(logging.INFO, logger="claimledger"):
        log_event("warning", "ledger.persist_failed", extra={"error_message": "x" * 600})

    record = next(r for r in caplog.records if r.getMessage() == "ledger.persist_failed")
    assert record.error_message.endswith("...<truncated>")


def test_log_event_renders_days_and_amounts(caplog):
    with caplog.at_level(logging.INFO, logger="claimledger"):
        log_event("info", "ledger.claimed", extra={"day": date(2026, 10, 19), "balance": Decimal("1E+1")})

    record = next(r for r in caplog.records if r.getMessage() == "ledger.claimed")
    assert record.day == "2026-10-19"
    assert record.balance == "10"


def test_bind_request_id_restores_previous_value():
    with bind_request_id("rid-outer"):
        with bind_request_id("rid-inner"):
            assert get_request_id() == "rid-inner"
        assert get_request_id() == "rid-outer"
    assert get_request_id("none") == "none"
