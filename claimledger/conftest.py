# claimledger/conftest.py
import json
import logging
from datetime import date, timedelta
from zoneinfo import ZoneInfo

import pytest

from claimledger.core.errors import PersistenceUnavailableError
from claimledger.features.ledger.service import ClaimLedger
from claimledger.features.ledger.store import MemoryStore
from claimledger.models.ledger import LedgerState

UTC_ZONE = ZoneInfo("UTC")


class FailingStore:
    """Store whose reads and/or writes always fail."""

    key = "ssc_data"

    def __init__(self, fail_read: bool = False, fail_write: bool = True):
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.writes = 0

    def read(self):
        if self.fail_read:
            raise PersistenceUnavailableError("store offline")
        return None

    def write(self, payload: str) -> None:
        self.writes += 1
        if self.fail_write:
            raise PersistenceUnavailableError("disk full")

    def describe(self) -> str:
        return "failing:test"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ledger(store):
    """Fresh ledger on an empty in-memory store, pinned to UTC."""
    return ClaimLedger(store, tz=UTC_ZONE)


@pytest.fixture
def seeded_ledger(store):
    """Factory: ledger whose last claim was yesterday with the given streak."""

    def _make(streak: int, today: date, **fields) -> ClaimLedger:
        yesterday = today - timedelta(days=1)
        state = LedgerState(
            current_streak=streak,
            best_streak=max(streak, fields.pop("best_streak", 0)),
            last_claim_date=yesterday,
            claimed_days=[yesterday],
            **fields,
        )
        return ClaimLedger(store, state, tz=UTC_ZONE)

    return _make


@pytest.fixture
def saved_state(store):
    """Decode whatever the ledger last wrote to the memory store."""

    def _read() -> dict:
        raw = store.read()
        assert raw is not None, "expected a persisted snapshot"
        return json.loads(raw)

    return _read


@pytest.fixture
def failing_store():
    """Factory for stores that raise PersistenceUnavailableError."""
    return FailingStore


@pytest.fixture(autouse=True)
def reset_ledger_logger():
    """Drop handlers bound to per-test capture streams."""
    yield
    logging.getLogger("claimledger").handlers = []
