"""
Ledger snapshot stores.

Each store maps one key to one serialized LedgerState snapshot and is
overwritten whole on every mutation. Backends:
- JsonFileStore: <data_dir>/<key>.json, replaced atomically
- SqlStore: one row per key in a SQLAlchemy-managed table
- MemoryStore: process memory only (tests, degraded sessions)

Read/write failures surface as PersistenceUnavailableError.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, create_engine, insert, select, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from claimledger.core.config import Settings, settings
from claimledger.core.errors import PersistenceUnavailableError

metadata = MetaData()

ledger_snapshots = Table(
    "ledger_snapshots",
    metadata,
    Column("key", String(128), primary_key=True),
    Column("payload", Text, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


class LedgerStore(Protocol):
    """Protocol for snapshot stores."""

    key: str

    def read(self) -> Optional[Union[str, bytes]]:
        """Return the stored snapshot, or None when nothing was saved yet."""
        ...

    def write(self, payload: str) -> None:
        """Replace the stored snapshot."""
        ...

    def describe(self) -> str:
        ...


class MemoryStore:
    def __init__(self, key: str = "ssc_data", payload: Optional[str] = None):
        self.key = key
        self._data: Dict[str, str] = {}
        if payload is not None:
            self._data[key] = payload

    def read(self) -> Optional[str]:
        return self._data.get(self.key)

    def write(self, payload: str) -> None:
        self._data[self.key] = payload

    def describe(self) -> str:
        return f"memory:{self.key}"


class JsonFileStore:
    def __init__(self, data_dir: Path, key: str = "ssc_data"):
        self.key = key
        self.path = Path(data_dir) / f"{key}.json"

    def read(self) -> Optional[bytes]:
        # Undecoded; bad UTF-8 is handled as a corrupt snapshot.
        try:
            if not self.path.exists():
                return None
            return self.path.read_bytes()
        except OSError as e:
            raise PersistenceUnavailableError(f"cannot read {self.path}: {e}") from e

    def write(self, payload: str) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceUnavailableError(f"cannot write {self.path}: {e}") from e

    def describe(self) -> str:
        return f"file:{self.path}"


class SqlStore:
    """Key/value snapshot table accessed through SQLAlchemy Core."""

    def __init__(self, database_url: str, key: str = "ssc_data", engine: Optional[Engine] = None):
        self.key = key
        self.database_url = database_url
        self._engine = engine
        self._tables_ready = False

    def _get_engine(self) -> Engine:
        if self._engine is None:
            url = make_url(self.database_url)
            if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(url, echo=False)
        if not self._tables_ready:
            metadata.create_all(self._engine, checkfirst=True)
            self._tables_ready = True
        return self._engine

    def read(self) -> Optional[str]:
        try:
            with self._get_engine().connect() as conn:
                row = conn.execute(
                    select(ledger_snapshots.c.payload).where(ledger_snapshots.c.key == self.key)
                ).first()
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceUnavailableError(f"cannot read snapshot {self.key!r}: {e}") from e
        return row.payload if row else None

    def write(self, payload: str) -> None:
        now = datetime.now(timezone.utc)
        try:
            with self._get_engine().begin() as conn:
                result = conn.execute(
                    update(ledger_snapshots)
                    .where(ledger_snapshots.c.key == self.key)
                    .values(payload=payload, updated_at=now)
                )
                if result.rowcount == 0:
                    conn.execute(insert(ledger_snapshots).values(key=self.key, payload=payload, updated_at=now))
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceUnavailableError(f"cannot write snapshot {self.key!r}: {e}") from e

    def describe(self) -> str:
        return f"sql:{make_url(self.database_url).render_as_string(hide_password=True)}#{self.key}"


def build_store(settings_obj: Optional[Settings] = None) -> LedgerStore:
    """Build the store selected by LEDGER_STORE."""
    cfg = settings_obj or settings
    kind = (cfg.LEDGER_STORE or "file").lower()
    if kind == "memory":
        return MemoryStore(key=cfg.LEDGER_STORE_KEY)
    if kind == "sql":
        return SqlStore(cfg.database_url, key=cfg.LEDGER_STORE_KEY)
    if kind == "file":
        return JsonFileStore(cfg.data_dir, key=cfg.LEDGER_STORE_KEY)
    raise ValueError(f"Unknown LEDGER_STORE: {cfg.LEDGER_STORE}")
