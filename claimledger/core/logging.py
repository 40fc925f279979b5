"""
Ledger logging.

Every ledger event goes through the ``claimledger`` logger as a short dotted
message (``ledger.claimed``) plus flat fields passed as ``extra``. The
production environment writes one JSON object per line; anything else gets
a single readable line. Records emitted while the HTTP adapter handles a
request carry that request's id.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterator, Optional

LOGGER_NAME = "claimledger"
FIELD_LIMIT = 500

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime", "request_id"}


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


@contextmanager
def bind_request_id(rid: str) -> Iterator[str]:
    """Make ``rid`` the request id of every record logged inside the block."""
    token = request_id_ctx_var.set(rid)
    try:
        yield rid
    finally:
        request_id_ctx_var.reset(token)


def render_field(value) -> str:
    """Flatten a field value: ISO days, plain decimals, capped length."""
    if isinstance(value, (date, datetime)):
        text = value.isoformat()
    elif isinstance(value, Decimal):
        text = format(value, "f")
    else:
        text = str(value)
    if len(text) > FIELD_LIMIT:
        return text[:FIELD_LIMIT] + "...<truncated>"
    return text


def event_fields(record: logging.LogRecord) -> Dict[str, object]:
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS and value is not None}


def _attach_request_id(record: logging.LogRecord) -> bool:
    if getattr(record, "request_id", None) is None:
        record.request_id = get_request_id()
    return True


class _LedgerFormatter(logging.Formatter):
    def timestamp(self, record: logging.LogRecord) -> str:
        return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


class JsonFormatter(_LedgerFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(event_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(_LedgerFormatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [self.timestamp(record), record.levelname]
        rid = getattr(record, "request_id", None)
        if rid:
            parts.append(f"[rid={rid}]")
        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in event_fields(record).items())
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(env: str = "development", level: str = "INFO") -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(_attach_request_id)

    logger.handlers = [handler]
    logger.propagate = True


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
):
    """Log a ledger event with rendered fields and the current request id."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        # Library use and tests may log before any adapter configured output.
        configure_logging(os.getenv("ENV", "development"))

    fields: Dict[str, object] = {"request_id": request_id or get_request_id()}
    if event_type:
        fields["event_type"] = event_type
    if error_code:
        fields["error_code"] = error_code
    for key, value in (extra or {}).items():
        fields[key] = render_field(value)

    logger.log(getattr(logging, level.upper(), logging.INFO), msg, extra=fields)
