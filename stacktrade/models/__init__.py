"""stacktrade data models — all Pydantic v2, all frozen (immutable)."""

from stacktrade.models.journal import JournalEntry, JournalEventKind
from stacktrade.models.ledger import (
    DEFAULT_FEE_PERCENT,
    GENESIS_BLOCK_HEIGHT,
    AccessToken,
    LedgerCounters,
    LedgerSnapshot,
    Listing,
    PurchaseRecord,
    Settlement,
    TraderMetrics,
)
from stacktrade.models.results import (
    LedgerErrorKind,
    LedgerOperationError,
    LedgerResult,
)

__all__ = [
    # ledger
    "DEFAULT_FEE_PERCENT",
    "GENESIS_BLOCK_HEIGHT",
    "AccessToken",
    "LedgerCounters",
    "LedgerSnapshot",
    "Listing",
    "PurchaseRecord",
    "Settlement",
    "TraderMetrics",
    # results
    "LedgerErrorKind",
    "LedgerOperationError",
    "LedgerResult",
    # journal
    "JournalEntry",
    "JournalEventKind",
]
