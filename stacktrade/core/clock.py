"""Block-height clock seam.

The ledger never produces block heights itself; it reads them from a
``BlockClock`` supplied by the caller (a chain client, a test, the CLI).
Readings must be non-decreasing over a ledger's lifetime.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stacktrade.models.ledger import GENESIS_BLOCK_HEIGHT


class ClockRegressionError(RuntimeError):
    """Raised when a clock reports a lower height than already observed."""


@runtime_checkable
class BlockClock(Protocol):
    """Protocol that every block-height source must implement."""

    def current_block_height(self) -> int:
        """Return the current block height."""
        ...


class ManualBlockClock:
    """A clock that only moves when told to.

    Examples
    --------
    >>> clock = ManualBlockClock()
    >>> clock.current_block_height()
    100
    >>> clock.advance(5)
    105
    """

    def __init__(self, start: int = GENESIS_BLOCK_HEIGHT) -> None:
        if start < 0:
            raise ValueError(f"Block height cannot be negative: {start}")
        self._height = start

    def current_block_height(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        """Move the clock forward by *blocks* and return the new height."""
        if blocks < 0:
            raise ClockRegressionError(f"Cannot advance by {blocks} blocks.")
        self._height += blocks
        return self._height
