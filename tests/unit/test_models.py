"""Tests for the frozen ledger models and LedgerResult."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from stacktrade.models import (
    AccessToken,
    LedgerCounters,
    LedgerErrorKind,
    LedgerOperationError,
    LedgerResult,
    LedgerSnapshot,
    Listing,
    PurchaseRecord,
)


class TestListing:
    def test_defaults(self):
        listing = Listing(
            owner="user1", price=100, summary="Test", content_type="image", created_at=100
        )
        assert listing.tradeable is True

    def test_frozen(self):
        listing = Listing(
            owner="user1", price=100, summary="Test", content_type="image", created_at=100
        )
        with pytest.raises(Exception):
            listing.price = 1

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            Listing(owner="u", price=0, summary="s", content_type="t", created_at=0)

    def test_summary_must_be_non_empty(self):
        with pytest.raises(ValidationError):
            Listing(owner="u", price=1, summary="", content_type="t", created_at=0)


class TestAccessToken:
    def test_non_empty(self):
        with pytest.raises(ValidationError):
            AccessToken(token="")


class TestCounters:
    def test_defaults(self):
        counters = LedgerCounters()
        assert counters.next_item_id == 1
        assert counters.fee_percent == 3
        assert counters.total_volume == 0
        assert counters.fees_collected == 0

    def test_fee_percent_bounds(self):
        with pytest.raises(ValidationError):
            LedgerCounters(fee_percent=101)


class TestSnapshot:
    def test_json_round_trip_keeps_int_keys(self):
        snapshot = LedgerSnapshot(
            listings={
                1: Listing(owner="a", price=5, summary="s", content_type="t", created_at=1)
            },
            access_tokens={1: AccessToken(token="tok")},
            purchase_records={
                "b": PurchaseRecord(item_id=1, purchased_at=2, price=5, seller="a")
            },
        )
        restored = LedgerSnapshot.model_validate_json(snapshot.model_dump_json())
        assert restored == snapshot
        assert 1 in restored.listings


class TestLedgerResult:
    def test_success(self):
        result = LedgerResult.success(7)
        assert result.ok
        assert result.value == 7
        assert result.error is None
        assert result.unwrap() == 7

    def test_failure(self):
        result = LedgerResult.failure(LedgerErrorKind.UNAUTHORIZED, "nope")
        assert not result.ok
        assert result.value is None
        assert result.error == LedgerErrorKind.UNAUTHORIZED

    def test_unwrap_failure_raises(self):
        result = LedgerResult.failure(LedgerErrorKind.PRICE_INVALID, "price 0")
        with pytest.raises(LedgerOperationError) as exc_info:
            result.unwrap()
        assert exc_info.value.kind == LedgerErrorKind.PRICE_INVALID
        assert "ERR_PRICE_INVALID" in str(exc_info.value)

    def test_unwrap_failure_without_kind_raises(self):
        with pytest.raises(ValueError, match="no error kind"):
            LedgerResult(ok=False).unwrap()

    def test_error_codes(self):
        assert {k.value for k in LedgerErrorKind} == {
            "ERR_PRICE_INVALID",
            "ERR_INPUT_INVALID",
            "ERR_ITEM_UNAVAILABLE",
            "ERR_SELF_TRADE_BLOCKED",
            "ERR_UNAUTHORIZED",
        }
