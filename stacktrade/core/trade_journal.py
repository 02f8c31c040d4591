"""Append-only, hash-chained trade journal backed by SQLite.

Design:
- Append-only: only ``append()`` writes; no update, no delete.
- Hash-chained: each entry includes the SHA-256 of the previous entry.
- WAL journal mode for concurrent readers.
- entry_hash UNIQUE constraint for tamper detection.

The journal can share a database file with ``LedgerStore``; it lives in
its own ``trade_journal`` table.  Given the store's session connection,
journal writes commit or roll back together with the ledger state.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from stacktrade.core.hasher import compute_entry_hash
from stacktrade.models.journal import JournalEntry, JournalEventKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_JOURNAL = """
CREATE TABLE IF NOT EXISTS trade_journal (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id              TEXT NOT NULL UNIQUE,
    event_kind            TEXT NOT NULL,
    item_id               INTEGER NOT NULL,
    principal             TEXT NOT NULL,
    block_height          INTEGER NOT NULL,
    details_json          TEXT NOT NULL DEFAULT '{}',
    recorded_at           TEXT NOT NULL,
    previous_entry_hash   TEXT NOT NULL DEFAULT '',
    entry_hash            TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_ITEM = """
CREATE INDEX IF NOT EXISTS idx_journal_item ON trade_journal(item_id, id);
"""


class JournalIntegrityError(RuntimeError):
    """Raised when the hash chain is broken."""


class TradeJournal:
    """Append-only, hash-chained record of successful ledger writes.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    connection:
        Open connection to run every statement on.  The caller owns its
        transaction; the journal never commits or closes it.
    """

    def __init__(
        self, db_path: Path, *, connection: sqlite3.Connection | None = None
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._shared = connection
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        if self._shared is not None:
            yield self._shared
            return
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connection() as conn:
            conn.execute(_CREATE_JOURNAL)
            conn.execute(_CREATE_IDX_ITEM)

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, entry: JournalEntry) -> JournalEntry:
        """Seal *entry* onto the end of the chain and persist it.

        Returns the entry with ``previous_entry_hash`` and ``entry_hash`` set.
        """
        previous_hash = self._get_latest_hash()

        entry_dict = entry.model_dump(mode="json")
        entry_dict["previous_entry_hash"] = previous_hash
        entry_dict["entry_hash"] = ""
        entry_hash = compute_entry_hash(entry_dict)

        sealed = entry.model_copy(
            update={
                "previous_entry_hash": previous_hash,
                "entry_hash": entry_hash,
            }
        )
        self._insert(sealed)
        logger.debug(
            "Journaled %s for item %d (%s).",
            sealed.event_kind.value,
            sealed.item_id,
            entry_hash[:12],
        )
        return sealed

    def _insert(self, entry: JournalEntry) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO trade_journal
                    (entry_id, event_kind, item_id, principal, block_height,
                     details_json, recorded_at, previous_entry_hash, entry_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.entry_id,
                    entry.event_kind.value,
                    entry.item_id,
                    entry.principal,
                    entry.block_height,
                    json.dumps(entry.details, sort_keys=True),
                    entry.recorded_at.isoformat()
                    if isinstance(entry.recorded_at, datetime)
                    else entry.recorded_at,
                    entry.previous_entry_hash,
                    entry.entry_hash,
                ),
            )

    def _get_latest_hash(self) -> str:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT entry_hash FROM trade_journal ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def entries(self) -> list[JournalEntry]:
        """Return every journal entry, oldest first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM trade_journal ORDER BY id ASC"
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def entries_for_item(self, item_id: int) -> list[JournalEntry]:
        """Return the journal entries that touch *item_id*, oldest first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM trade_journal WHERE item_id = ? ORDER BY id ASC",
                (item_id,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def __len__(self) -> int:
        with self._connection() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM trade_journal").fetchone()
        return count

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """Walk the chain, recomputing every hash and link.

        Returns True if the chain is valid, raises JournalIntegrityError
        otherwise.
        """
        prev_hash = ""
        for entry in self.entries():
            if entry.previous_entry_hash != prev_hash:
                raise JournalIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )

            expected_hash = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected_hash:
                raise JournalIntegrityError(
                    f"Tampered entry {entry.entry_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {entry.entry_hash!r}"
                )

            prev_hash = entry.entry_hash

        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: tuple) -> JournalEntry:
        (
            _id,
            entry_id,
            event_kind,
            item_id,
            principal,
            block_height,
            details_json,
            recorded_at,
            previous_entry_hash,
            entry_hash,
        ) = row
        return JournalEntry(
            entry_id=entry_id,
            event_kind=JournalEventKind(event_kind),
            item_id=item_id,
            principal=principal,
            block_height=block_height,
            details=json.loads(details_json),
            recorded_at=recorded_at,
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )
