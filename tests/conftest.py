"""Shared test fixtures for stacktrade."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from stacktrade.core.clock import ManualBlockClock
from stacktrade.core.ledger_store import LedgerStore
from stacktrade.core.marketplace_ledger import MarketplaceLedger
from stacktrade.core.trade_journal import TradeJournal


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def clock() -> ManualBlockClock:
    """Provide a clock parked at the genesis height (100)."""
    return ManualBlockClock()


@pytest.fixture
def ledger(clock: ManualBlockClock) -> MarketplaceLedger:
    """Provide a fresh in-memory ledger with the default 3% fee."""
    return MarketplaceLedger(clock)


@pytest.fixture
def journal(tmp_dir: Path) -> TradeJournal:
    """Provide a fresh TradeJournal backed by a temp SQLite database."""
    return TradeJournal(tmp_dir / "journal.db")


@pytest.fixture
def journaled_ledger(clock: ManualBlockClock, journal: TradeJournal) -> MarketplaceLedger:
    """Provide a ledger that journals every successful write."""
    return MarketplaceLedger(clock, journal=journal)


@pytest.fixture
def store(tmp_dir: Path) -> LedgerStore:
    """Provide a fresh LedgerStore backed by a temp SQLite database."""
    return LedgerStore(tmp_dir / "ledger.db")


# ---------------------------------------------------------------------------
# Listing factory shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def list_content(ledger: MarketplaceLedger) -> Callable[..., int]:
    """Factory fixture: register content on ``ledger`` and return its id."""

    def _factory(
        price: int = 100,
        seller: str = "user1",
        token: str = "secure-token-123",
        summary: str = "Test Content",
        content_type: str = "image",
    ) -> int:
        return ledger.register_content(price, summary, content_type, token, seller).unwrap()

    return _factory
