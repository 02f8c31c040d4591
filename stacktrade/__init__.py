"""stacktrade: a digital-content marketplace ledger.

Sellers list content, buyers purchase it (paying a platform fee), and only
the verified buyer may retrieve the content's access token.

  - In-memory ``MarketplaceLedger`` with returned, typed results
  - Pluggable block-height clock
  - Optional SQLite persistence and a hash-chained trade journal
  - Typer/Rich CLI
"""

__version__ = "0.1.0"

from stacktrade.core.clock import BlockClock, ManualBlockClock
from stacktrade.core.marketplace_ledger import MarketplaceLedger
from stacktrade.models.results import LedgerErrorKind, LedgerResult

__all__ = [
    "BlockClock",
    "LedgerErrorKind",
    "LedgerResult",
    "ManualBlockClock",
    "MarketplaceLedger",
    "__version__",
]
