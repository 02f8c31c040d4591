"""MarketplaceLedger — listing, purchase settlement, and token disclosure.

The ledger owns every piece of marketplace state and exposes three
state-transition operations:

- ``register_content``       — a seller lists content (Unlisted -> Listed)
- ``acquire_content``        — a buyer purchases a listing, paying the fee
- ``retrieve_access_token``  — a verified buyer reads the content token

Validation failures are returned as ``LedgerResult`` failures, never
raised.  Each operation is all-or-nothing: state is only touched after
every check has passed and the journal (when configured) has accepted
the entry.

Concurrency
-----------
All operations run under one re-entrant lock, so writes are serialized
and no caller ever observes a partially-applied write.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from stacktrade.core.clock import BlockClock, ClockRegressionError, ManualBlockClock
from stacktrade.core.trade_journal import TradeJournal
from stacktrade.models.journal import JournalEntry, JournalEventKind
from stacktrade.models.ledger import (
    DEFAULT_FEE_PERCENT,
    AccessToken,
    LedgerCounters,
    LedgerSnapshot,
    Listing,
    PurchaseRecord,
    Settlement,
    TraderMetrics,
)
from stacktrade.models.results import LedgerErrorKind, LedgerResult

logger = logging.getLogger(__name__)


def compute_fee_split(price: int, fee_percent: int) -> tuple[int, int]:
    """Split *price* into ``(fee_amount, seller_share)``.

    The fee is rounded down; the seller share absorbs the remainder.

    Examples
    --------
    >>> compute_fee_split(100, 3)
    (3, 97)
    >>> compute_fee_split(50, 3)
    (1, 49)
    """
    fee_amount = price * fee_percent // 100
    return fee_amount, price - fee_amount


class MarketplaceLedger:
    """In-memory marketplace ledger.

    Parameters
    ----------
    clock:
        Source of block heights.  Defaults to a ``ManualBlockClock`` at
        the genesis height.
    fee_percent:
        Platform fee as a whole percentage (0-100) of the sale price.
        Fixed for the lifetime of the ledger.
    journal:
        Optional ``TradeJournal`` that receives one sealed entry per
        successful write.

    Examples
    --------
    >>> ledger = MarketplaceLedger()
    >>> ledger.register_content(100, "Test Content", "image", "secure-token-123", "user1").value
    1
    >>> ledger.acquire_content(1, "user2").ok
    True
    >>> ledger.retrieve_access_token(1, "user2").value
    'secure-token-123'
    """

    def __init__(
        self,
        clock: BlockClock | None = None,
        *,
        fee_percent: int = DEFAULT_FEE_PERCENT,
        journal: TradeJournal | None = None,
    ) -> None:
        if not 0 <= fee_percent <= 100:
            raise ValueError(f"fee_percent must be within 0..100, got {fee_percent}")
        self._clock: BlockClock = clock or ManualBlockClock()
        self._journal = journal
        self._lock = threading.RLock()

        self._listings: dict[int, Listing] = {}
        self._access_tokens: dict[int, AccessToken] = {}
        self._purchase_records: dict[str, PurchaseRecord] = {}
        self._trader_metrics: dict[str, TraderMetrics] = {}
        self._counters = LedgerCounters(fee_percent=fee_percent)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        clock: BlockClock | None = None,
        *,
        journal: TradeJournal | None = None,
    ) -> MarketplaceLedger:
        """Restore a ledger from a ``LedgerSnapshot``.

        Raises ``ValueError`` if the snapshot breaks a ledger invariant
        (a listing without its token, an id at or above ``next_item_id``,
        or a purchase record pointing at a missing listing).
        """
        if set(snapshot.listings) != set(snapshot.access_tokens):
            raise ValueError("Every listing must have exactly one access token.")
        if snapshot.listings and max(snapshot.listings) >= snapshot.counters.next_item_id:
            raise ValueError(
                f"next_item_id={snapshot.counters.next_item_id} would reuse "
                f"existing item id {max(snapshot.listings)}."
            )
        for buyer, record in snapshot.purchase_records.items():
            if record.item_id not in snapshot.listings:
                raise ValueError(
                    f"Purchase record for {buyer!r} references unknown item "
                    f"{record.item_id}."
                )

        ledger = cls(clock, fee_percent=snapshot.counters.fee_percent, journal=journal)
        ledger._listings = dict(snapshot.listings)
        ledger._access_tokens = dict(snapshot.access_tokens)
        ledger._purchase_records = dict(snapshot.purchase_records)
        ledger._trader_metrics = dict(snapshot.trader_metrics)
        ledger._counters = snapshot.counters
        return ledger

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def register_content(
        self,
        price: int,
        summary: str,
        content_type: str,
        access_token: str,
        seller: str,
    ) -> LedgerResult[int]:
        """List content for sale and return its new item id.

        Price is validated before the string fields, so a call that is
        wrong on both counts reports ``PRICE_INVALID``.
        """
        with self._lock:
            if price <= 0:
                return self._reject(
                    LedgerErrorKind.PRICE_INVALID,
                    f"asking price must be positive, got {price}",
                )
            if not summary or not content_type or not access_token:
                return self._reject(
                    LedgerErrorKind.INPUT_INVALID,
                    "summary, content type and access token are required",
                )

            height = self._read_clock()
            item_id = self._counters.next_item_id
            listing = Listing(
                owner=seller,
                price=price,
                summary=summary,
                content_type=content_type,
                created_at=height,
            )
            token = AccessToken(token=access_token)

            self._journal_event(
                JournalEventKind.CONTENT_REGISTERED,
                item_id=item_id,
                principal=seller,
                block_height=height,
                details={"price": price, "content_type": content_type},
            )

            self._listings[item_id] = listing
            self._access_tokens[item_id] = token
            self._counters = self._counters.model_copy(
                update={"next_item_id": item_id + 1, "last_block_height": height}
            )

        logger.info(
            "Registered item %d for %s at price %d (block %d).",
            item_id,
            seller,
            price,
            height,
        )
        return LedgerResult.success(item_id)

    def acquire_content(self, item_id: int, buyer: str) -> LedgerResult[Settlement]:
        """Purchase a listing and book the fee split.

        The listing stays tradeable, so any number of distinct buyers may
        purchase it.  The buyer's previous purchase record, if any, is
        replaced.
        """
        with self._lock:
            listing = self._listings.get(item_id)
            if listing is None:
                return self._reject(
                    LedgerErrorKind.ITEM_UNAVAILABLE, f"no listing for item {item_id}"
                )
            if buyer == listing.owner:
                return self._reject(
                    LedgerErrorKind.SELF_TRADE_BLOCKED,
                    f"{buyer!r} owns item {item_id}",
                )
            if not listing.tradeable:
                return self._reject(
                    LedgerErrorKind.ITEM_UNAVAILABLE, f"item {item_id} is not tradeable"
                )

            height = self._read_clock()
            fee_amount, seller_share = compute_fee_split(
                listing.price, self._counters.fee_percent
            )
            settlement = Settlement(
                item_id=item_id,
                buyer=buyer,
                seller=listing.owner,
                price=listing.price,
                fee_amount=fee_amount,
                seller_share=seller_share,
                block_height=height,
            )
            record = PurchaseRecord(
                item_id=item_id,
                purchased_at=height,
                price=listing.price,
                seller=listing.owner,
                fee_amount=fee_amount,
                seller_share=seller_share,
            )

            self._journal_event(
                JournalEventKind.CONTENT_ACQUIRED,
                item_id=item_id,
                principal=buyer,
                block_height=height,
                details={
                    "seller": listing.owner,
                    "price": listing.price,
                    "fee_amount": fee_amount,
                    "seller_share": seller_share,
                },
            )

            replaced = self._purchase_records.get(buyer)
            self._purchase_records[buyer] = record
            self._bump_metrics(buyer, purchases=1, spent=listing.price)
            self._bump_metrics(listing.owner, sales=1, earned=seller_share)
            self._counters = self._counters.model_copy(
                update={
                    "total_volume": self._counters.total_volume + 1,
                    "fees_collected": self._counters.fees_collected + fee_amount,
                    "last_block_height": height,
                }
            )

        if replaced is not None and replaced.item_id != item_id:
            logger.info(
                "Purchase of item %d by %s replaces its record for item %d.",
                item_id,
                buyer,
                replaced.item_id,
            )
        logger.info(
            "Settled item %d: %s -> %s, price %d (fee %d, seller %d).",
            item_id,
            buyer,
            listing.owner,
            listing.price,
            fee_amount,
            seller_share,
        )
        return LedgerResult.success(settlement)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def retrieve_access_token(self, item_id: int, buyer: str) -> LedgerResult[str]:
        """Disclose the access token to the buyer of *item_id*.

        Only the buyer's latest purchase authorizes retrieval.  Retrieval
        is idempotent: the token is never rotated or consumed.
        """
        with self._lock:
            record = self._purchase_records.get(buyer)
            if record is None or record.item_id != item_id:
                return self._reject(
                    LedgerErrorKind.UNAUTHORIZED,
                    f"{buyer!r} holds no purchase of item {item_id}",
                )
            token = self._access_tokens[item_id].token

        logger.debug("Disclosed access token for item %d to %s.", item_id, buyer)
        return LedgerResult.success(token)

    def get_listing(self, item_id: int) -> Listing | None:
        """Return the ``Listing`` for *item_id*, or ``None``."""
        with self._lock:
            return self._listings.get(item_id)

    def list_listings(self) -> list[tuple[int, Listing]]:
        """Return every ``(item_id, Listing)`` pair, ordered by id."""
        with self._lock:
            return sorted(self._listings.items())

    def get_purchase_record(self, buyer: str) -> PurchaseRecord | None:
        """Return the buyer's current ``PurchaseRecord``, or ``None``."""
        with self._lock:
            return self._purchase_records.get(buyer)

    def get_trader_metrics(self, principal: str) -> TraderMetrics:
        """Return running trade totals for *principal* (zeros if unseen)."""
        with self._lock:
            return self._trader_metrics.get(principal, TraderMetrics())

    @property
    def counters(self) -> LedgerCounters:
        with self._lock:
            return self._counters

    def snapshot(self) -> LedgerSnapshot:
        """Return a frozen copy of the complete ledger state."""
        with self._lock:
            return LedgerSnapshot(
                listings=dict(self._listings),
                access_tokens=dict(self._access_tokens),
                purchase_records=dict(self._purchase_records),
                counters=self._counters,
                trader_metrics=dict(self._trader_metrics),
            )

    def get_stats(self) -> dict[str, Any]:
        """Return summary statistics about the ledger.

        Returns
        -------
        dict[str, Any]
            Keys: ``listings``, ``tradeable``, ``buyers``, ``total_volume``,
            ``fees_collected``, ``fee_percent``, ``next_item_id``,
            ``last_block_height``.
        """
        with self._lock:
            tradeable = sum(1 for listing in self._listings.values() if listing.tradeable)
            return {
                "listings": len(self._listings),
                "tradeable": tradeable,
                "buyers": len(self._purchase_records),
                "total_volume": self._counters.total_volume,
                "fees_collected": self._counters.fees_collected,
                "fee_percent": self._counters.fee_percent,
                "next_item_id": self._counters.next_item_id,
                "last_block_height": self._counters.last_block_height,
            }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reject(self, kind: LedgerErrorKind, message: str) -> LedgerResult[Any]:
        logger.debug("Rejected ledger operation: %s (%s).", kind.value, message)
        return LedgerResult.failure(kind, message)

    def _read_clock(self) -> int:
        height = self._clock.current_block_height()
        if height < self._counters.last_block_height:
            raise ClockRegressionError(
                f"Clock reported block {height}, but block "
                f"{self._counters.last_block_height} was already observed."
            )
        return height

    def _journal_event(
        self,
        kind: JournalEventKind,
        *,
        item_id: int,
        principal: str,
        block_height: int,
        details: dict[str, Any],
    ) -> None:
        if self._journal is None:
            return
        self._journal.append(
            JournalEntry(
                event_kind=kind,
                item_id=item_id,
                principal=principal,
                block_height=block_height,
                details=details,
            )
        )

    def _bump_metrics(self, principal: str, **deltas: int) -> None:
        current = self._trader_metrics.get(principal, TraderMetrics())
        self._trader_metrics[principal] = current.model_copy(
            update={k: getattr(current, k) + v for k, v in deltas.items()}
        )
