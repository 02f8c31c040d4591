"""Tests for the TradeJournal — append-only, hash-chained, tamper-evident."""

from __future__ import annotations

import sqlite3

import pytest

from stacktrade.core.clock import ManualBlockClock
from stacktrade.core.marketplace_ledger import MarketplaceLedger
from stacktrade.core.trade_journal import JournalIntegrityError, TradeJournal
from stacktrade.models.journal import JournalEntry, JournalEventKind


def _entry(item_id: int = 1, principal: str = "user1") -> JournalEntry:
    return JournalEntry(
        event_kind=JournalEventKind.CONTENT_REGISTERED,
        item_id=item_id,
        principal=principal,
        block_height=100,
        details={"price": 100},
    )


class TestTradeJournal:
    def test_append_sets_entry_hash(self, journal: TradeJournal):
        sealed = journal.append(_entry())
        assert sealed.entry_hash != ""
        assert sealed.previous_entry_hash == ""

    def test_hash_chain_links(self, journal: TradeJournal):
        e1 = journal.append(_entry(1))
        e2 = journal.append(_entry(2))
        assert e2.previous_entry_hash == e1.entry_hash

    def test_verify_chain_valid(self, journal: TradeJournal):
        journal.append(_entry(1))
        journal.append(_entry(2))
        assert journal.verify_chain() is True

    def test_verify_chain_empty(self, journal: TradeJournal):
        assert journal.verify_chain() is True

    def test_entries_round_trip(self, journal: TradeJournal):
        sealed = journal.append(_entry(3, "alice"))
        (stored,) = journal.entries()
        assert stored == sealed

    def test_entries_for_item(self, journal: TradeJournal):
        journal.append(_entry(1))
        journal.append(_entry(2))
        journal.append(_entry(1, "user2"))
        assert len(journal.entries_for_item(1)) == 2
        assert len(journal) == 3

    def test_tampered_details_detected(self, journal: TradeJournal, tmp_dir):
        journal.append(_entry(1))
        journal.append(_entry(2))
        with sqlite3.connect(str(tmp_dir / "journal.db")) as conn:
            conn.execute(
                "UPDATE trade_journal SET details_json = ? WHERE item_id = 1",
                ('{"price": 1}',),
            )
        with pytest.raises(JournalIntegrityError, match="Tampered"):
            journal.verify_chain()

    def test_deleted_entry_detected(self, journal: TradeJournal, tmp_dir):
        journal.append(_entry(1))
        journal.append(_entry(2))
        journal.append(_entry(3))
        with sqlite3.connect(str(tmp_dir / "journal.db")) as conn:
            conn.execute("DELETE FROM trade_journal WHERE item_id = 2")
        with pytest.raises(JournalIntegrityError, match="Chain broken"):
            journal.verify_chain()

    def test_reopen_continues_chain(self, journal: TradeJournal, tmp_dir):
        e1 = journal.append(_entry(1))
        reopened = TradeJournal(tmp_dir / "journal.db")
        e2 = reopened.append(_entry(2))
        assert e2.previous_entry_hash == e1.entry_hash
        assert reopened.verify_chain() is True


class TestLedgerJournaling:
    def test_successful_writes_journaled(
        self, journaled_ledger: MarketplaceLedger, journal: TradeJournal
    ):
        item_id = journaled_ledger.register_content(100, "c", "image", "secret", "user1").value
        journaled_ledger.acquire_content(item_id, "user2")

        kinds = [e.event_kind for e in journal.entries()]
        assert kinds == [
            JournalEventKind.CONTENT_REGISTERED,
            JournalEventKind.CONTENT_ACQUIRED,
        ]
        acquired = journal.entries()[1]
        assert acquired.principal == "user2"
        assert acquired.details == {
            "seller": "user1",
            "price": 100,
            "fee_amount": 3,
            "seller_share": 97,
        }

    def test_rejections_not_journaled(
        self, journaled_ledger: MarketplaceLedger, journal: TradeJournal
    ):
        journaled_ledger.register_content(0, "c", "image", "secret", "user1")
        journaled_ledger.acquire_content(999, "user2")
        assert len(journal) == 0

    def test_retrieval_not_journaled(
        self, journaled_ledger: MarketplaceLedger, journal: TradeJournal
    ):
        item_id = journaled_ledger.register_content(100, "c", "image", "secret", "user1").value
        journaled_ledger.acquire_content(item_id, "user2")
        journaled_ledger.retrieve_access_token(item_id, "user2")
        assert len(journal) == 2

    def test_access_token_never_journaled(
        self, journaled_ledger: MarketplaceLedger, journal: TradeJournal
    ):
        item_id = journaled_ledger.register_content(
            100, "c", "image", "very-secret-token", "user1"
        ).value
        journaled_ledger.acquire_content(item_id, "user2")
        for entry in journal.entries():
            assert "very-secret-token" not in entry.model_dump_json()


class _FailingJournal(TradeJournal):
    """Journal whose appends start failing once ``failing`` is set."""

    failing = False

    def append(self, entry: JournalEntry) -> JournalEntry:
        if self.failing:
            raise sqlite3.OperationalError("disk I/O error")
        return super().append(entry)


class TestJournalFailure:
    def test_failed_append_blocks_registration(self, clock: ManualBlockClock, tmp_dir):
        journal = _FailingJournal(tmp_dir / "failing.db")
        journal.failing = True
        ledger = MarketplaceLedger(clock, journal=journal)
        before = ledger.snapshot()

        with pytest.raises(sqlite3.OperationalError):
            ledger.register_content(100, "c", "image", "secret", "user1")

        assert ledger.snapshot() == before
        assert ledger.counters.next_item_id == 1
        assert ledger.get_listing(1) is None

    def test_failed_append_blocks_purchase(self, clock: ManualBlockClock, tmp_dir):
        journal = _FailingJournal(tmp_dir / "failing.db")
        ledger = MarketplaceLedger(clock, journal=journal)
        item_id = ledger.register_content(100, "c", "image", "secret", "user1").unwrap()
        clock.advance(5)
        journal.failing = True
        before = ledger.snapshot()

        with pytest.raises(sqlite3.OperationalError):
            ledger.acquire_content(item_id, "user2")

        assert ledger.snapshot() == before
        assert ledger.counters.total_volume == 0
        assert ledger.counters.last_block_height == 100
        assert ledger.get_purchase_record("user2") is None
        assert not ledger.retrieve_access_token(item_id, "user2").ok

    def test_ids_continue_after_journal_recovers(self, clock: ManualBlockClock, tmp_dir):
        journal = _FailingJournal(tmp_dir / "failing.db")
        journal.failing = True
        ledger = MarketplaceLedger(clock, journal=journal)
        with pytest.raises(sqlite3.OperationalError):
            ledger.register_content(100, "c", "image", "secret", "user1")

        journal.failing = False
        assert ledger.register_content(100, "c", "image", "secret", "user1").value == 1
        assert len(journal) == 1
