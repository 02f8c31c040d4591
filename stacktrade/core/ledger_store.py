"""SQLite persistence for the marketplace ledger.

Tables mirror the ledger keyspaces one-to-one::

    listings          (item_id PK)  — Listing
    access_tokens     (item_id PK)  — AccessToken
    purchase_records  (buyer PK)    — PurchaseRecord
    ledger_counters   (single row)  — LedgerCounters
    trader_metrics    (principal PK) — TraderMetrics

``save()`` writes a full snapshot inside one transaction, so a crash
mid-save leaves the previous snapshot intact.  ``session()`` holds the
database write lock from the read through the save, so overlapping
writers queue instead of overwriting each other.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from stacktrade.core.clock import BlockClock
from stacktrade.core.marketplace_ledger import MarketplaceLedger
from stacktrade.core.trade_journal import TradeJournal
from stacktrade.models.ledger import (
    DEFAULT_FEE_PERCENT,
    AccessToken,
    LedgerCounters,
    LedgerSnapshot,
    Listing,
    PurchaseRecord,
    TraderMetrics,
)

logger = logging.getLogger(__name__)

# Seconds a session waits for another writer before giving up.
DEFAULT_LOCK_TIMEOUT = 5.0


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS listings (
        item_id       INTEGER PRIMARY KEY,
        owner         TEXT NOT NULL,
        price         INTEGER NOT NULL CHECK (price > 0),
        summary       TEXT NOT NULL,
        content_type  TEXT NOT NULL,
        tradeable     INTEGER NOT NULL DEFAULT 1,
        created_at    INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS access_tokens (
        item_id  INTEGER PRIMARY KEY REFERENCES listings(item_id),
        token    TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS purchase_records (
        buyer         TEXT PRIMARY KEY,
        item_id       INTEGER NOT NULL REFERENCES listings(item_id),
        purchased_at  INTEGER NOT NULL,
        price         INTEGER NOT NULL,
        seller        TEXT NOT NULL,
        fee_amount    INTEGER NOT NULL DEFAULT 0,
        seller_share  INTEGER NOT NULL DEFAULT 0
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_counters (
        id                 INTEGER PRIMARY KEY CHECK (id = 1),
        next_item_id       INTEGER NOT NULL,
        fee_percent        INTEGER NOT NULL,
        total_volume       INTEGER NOT NULL,
        fees_collected     INTEGER NOT NULL,
        last_block_height  INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS trader_metrics (
        principal  TEXT PRIMARY KEY,
        purchases  INTEGER NOT NULL,
        sales      INTEGER NOT NULL,
        spent      INTEGER NOT NULL,
        earned     INTEGER NOT NULL
    );
    """,
)

# Children before parents, so foreign keys never dangle mid-transaction.
_TABLES_DELETE_ORDER = (
    "purchase_records",
    "access_tokens",
    "listings",
    "ledger_counters",
    "trader_metrics",
)


class LedgerBusyError(sqlite3.OperationalError):
    """Raised when another session holds the ledger write lock too long."""


class LedgerStore:
    """Durable snapshot storage for a ``MarketplaceLedger``.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    timeout:
        Seconds to wait for a competing writer to release the database.
    """

    def __init__(self, db_path: Path, *, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self._db_path), timeout=self._timeout, check_same_thread=False
        )
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _connection(
        self, conn: sqlite3.Connection | None = None
    ) -> Iterator[sqlite3.Connection]:
        if conn is not None:
            yield conn
            return
        own = self._connect()
        try:
            with own:
                yield own
        finally:
            own.close()

    def _init_schema(self) -> None:
        with self._connection() as conn:
            for ddl in _SCHEMA:
                conn.execute(ddl)

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """Hold the database write lock for the duration of the block.

        Yields a connection inside a ``BEGIN IMMEDIATE`` transaction.  Pass
        it to ``read_snapshot``, ``save`` and ``TradeJournal`` so they all
        share the transaction.  Commits on a clean exit and rolls back if
        the block raises.

        Raises ``LedgerBusyError`` if another session keeps the lock past
        the store's timeout.
        """
        conn = self._connect()
        conn.isolation_level = None
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as exc:
                raise LedgerBusyError(
                    f"Ledger {self._db_path} is locked by another session."
                ) from exc
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(
        self, ledger: MarketplaceLedger, conn: sqlite3.Connection | None = None
    ) -> LedgerSnapshot:
        """Persist a full snapshot of *ledger*, replacing the previous one.

        Runs on *conn* when given (see ``session``), otherwise in a
        transaction of its own.
        """
        snapshot = ledger.snapshot()
        with self._connection(conn) as db:
            for table in _TABLES_DELETE_ORDER:
                db.execute(f"DELETE FROM {table}")
            db.executemany(
                "INSERT INTO listings VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        item_id,
                        listing.owner,
                        listing.price,
                        listing.summary,
                        listing.content_type,
                        int(listing.tradeable),
                        listing.created_at,
                    )
                    for item_id, listing in snapshot.listings.items()
                ],
            )
            db.executemany(
                "INSERT INTO access_tokens VALUES (?, ?)",
                [(item_id, t.token) for item_id, t in snapshot.access_tokens.items()],
            )
            db.executemany(
                "INSERT INTO purchase_records VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        buyer,
                        r.item_id,
                        r.purchased_at,
                        r.price,
                        r.seller,
                        r.fee_amount,
                        r.seller_share,
                    )
                    for buyer, r in snapshot.purchase_records.items()
                ],
            )
            c = snapshot.counters
            db.execute(
                "INSERT INTO ledger_counters VALUES (1, ?, ?, ?, ?, ?)",
                (
                    c.next_item_id,
                    c.fee_percent,
                    c.total_volume,
                    c.fees_collected,
                    c.last_block_height,
                ),
            )
            db.executemany(
                "INSERT INTO trader_metrics VALUES (?, ?, ?, ?, ?)",
                [
                    (p, m.purchases, m.sales, m.spent, m.earned)
                    for p, m in snapshot.trader_metrics.items()
                ],
            )

        logger.debug(
            "Saved ledger snapshot to %s (%d listing(s), %d purchase record(s)).",
            self._db_path,
            len(snapshot.listings),
            len(snapshot.purchase_records),
        )
        return snapshot

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_snapshot(
        self, conn: sqlite3.Connection | None = None
    ) -> LedgerSnapshot | None:
        """Return the stored snapshot, or ``None`` if nothing was saved yet."""
        with self._connection(conn) as db:
            counters_row = db.execute(
                "SELECT next_item_id, fee_percent, total_volume, fees_collected, "
                "last_block_height FROM ledger_counters WHERE id = 1"
            ).fetchone()
            if counters_row is None:
                return None

            listings = {
                row[0]: Listing(
                    owner=row[1],
                    price=row[2],
                    summary=row[3],
                    content_type=row[4],
                    tradeable=bool(row[5]),
                    created_at=row[6],
                )
                for row in db.execute("SELECT * FROM listings")
            }
            access_tokens = {
                row[0]: AccessToken(token=row[1])
                for row in db.execute("SELECT * FROM access_tokens")
            }
            purchase_records = {
                row[0]: PurchaseRecord(
                    item_id=row[1],
                    purchased_at=row[2],
                    price=row[3],
                    seller=row[4],
                    fee_amount=row[5],
                    seller_share=row[6],
                )
                for row in db.execute("SELECT * FROM purchase_records")
            }
            trader_metrics = {
                row[0]: TraderMetrics(
                    purchases=row[1], sales=row[2], spent=row[3], earned=row[4]
                )
                for row in db.execute("SELECT * FROM trader_metrics")
            }

        next_item_id, fee_percent, total_volume, fees_collected, last_height = counters_row
        return LedgerSnapshot(
            listings=listings,
            access_tokens=access_tokens,
            purchase_records=purchase_records,
            counters=LedgerCounters(
                next_item_id=next_item_id,
                fee_percent=fee_percent,
                total_volume=total_volume,
                fees_collected=fees_collected,
                last_block_height=last_height,
            ),
            trader_metrics=trader_metrics,
        )

    def load(
        self,
        clock: BlockClock | None = None,
        *,
        fee_percent: int = DEFAULT_FEE_PERCENT,
        journal: TradeJournal | None = None,
    ) -> MarketplaceLedger:
        """Restore the stored ledger, or create an empty one.

        *fee_percent* only applies to a fresh ledger; a stored ledger keeps
        the fee it was created with.
        """
        snapshot = self.read_snapshot()
        if snapshot is None:
            logger.debug("No ledger at %s, starting fresh.", self._db_path)
            return MarketplaceLedger(clock, fee_percent=fee_percent, journal=journal)
        if snapshot.counters.fee_percent != fee_percent:
            logger.warning(
                "Stored ledger uses a %d%% fee; ignoring requested %d%%.",
                snapshot.counters.fee_percent,
                fee_percent,
            )
        logger.info(
            "Loaded ledger from %s (%d listing(s)).",
            self._db_path,
            len(snapshot.listings),
        )
        return MarketplaceLedger.from_snapshot(snapshot, clock, journal=journal)
