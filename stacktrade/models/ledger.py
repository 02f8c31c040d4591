"""Marketplace ledger records — listings, access tokens, purchases, counters.

Every record is a frozen Pydantic model.  The ledger replaces a record
wholesale (``model_copy``) instead of mutating it in place, so a reader
holding a reference never observes a half-applied write.

Keyspaces
---------
- ``listings``          : ItemId  -> Listing
- ``access_tokens``     : ItemId  -> AccessToken
- ``purchase_records``  : buyer   -> PurchaseRecord (latest purchase only)
- ``counters``          : single LedgerCounters row
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Platform fee charged on every sale, as a whole percentage of the price.
DEFAULT_FEE_PERCENT = 3

# Block height reported by the default clock before any block is produced.
GENESIS_BLOCK_HEIGHT = 100


class Listing(BaseModel):
    """A seller's offer of content at a fixed price.

    ``tradeable`` is set at creation and never flipped in this ledger;
    the field exists so a delisting workflow can be layered on later.
    """

    model_config = ConfigDict(frozen=True)

    owner: str
    price: int = Field(gt=0)
    summary: str = Field(min_length=1)
    content_type: str = Field(min_length=1)
    tradeable: bool = True
    created_at: int = Field(ge=0)  # block height


class AccessToken(BaseModel):
    """Opaque secret disclosed only to an authorized buyer."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(min_length=1)


class PurchaseRecord(BaseModel):
    """Proof that a buyer bought an item, used to authorize retrieval.

    Only one record is kept per buyer: a later purchase replaces it.
    """

    model_config = ConfigDict(frozen=True)

    item_id: int = Field(ge=1)
    purchased_at: int = Field(ge=0)  # block height
    price: int = Field(gt=0)
    seller: str
    fee_amount: int = Field(default=0, ge=0)
    seller_share: int = Field(default=0, ge=0)


class LedgerCounters(BaseModel):
    """Process-wide scalars mutated by the write operations."""

    model_config = ConfigDict(frozen=True)

    next_item_id: int = Field(default=1, ge=1)
    fee_percent: int = Field(default=DEFAULT_FEE_PERCENT, ge=0, le=100)
    total_volume: int = Field(default=0, ge=0)  # number of settled purchases
    fees_collected: int = Field(default=0, ge=0)
    last_block_height: int = Field(default=0, ge=0)


class TraderMetrics(BaseModel):
    """Running per-principal trade totals."""

    model_config = ConfigDict(frozen=True)

    purchases: int = 0
    sales: int = 0
    spent: int = 0
    earned: int = 0  # seller share, after the platform fee


class Settlement(BaseModel):
    """Receipt for a settled purchase.

    No funds move inside the ledger; this records the derived split so a
    payment rail can execute it.  ``fee_amount`` is rounded down and the
    seller share absorbs the remainder, so the two always sum to ``price``.
    """

    model_config = ConfigDict(frozen=True)

    item_id: int
    buyer: str
    seller: str
    price: int
    fee_amount: int
    seller_share: int
    block_height: int


class LedgerSnapshot(BaseModel):
    """Frozen export of the complete ledger state.

    Used by ``LedgerStore`` for persistence and by
    ``MarketplaceLedger.from_snapshot`` to restore a ledger.
    """

    model_config = ConfigDict(frozen=True)

    listings: dict[int, Listing] = Field(default_factory=dict)
    access_tokens: dict[int, AccessToken] = Field(default_factory=dict)
    purchase_records: dict[str, PurchaseRecord] = Field(default_factory=dict)
    counters: LedgerCounters = LedgerCounters()
    trader_metrics: dict[str, TraderMetrics] = Field(default_factory=dict)
