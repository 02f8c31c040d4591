"""Tests for the block-height clock seam."""

from __future__ import annotations

import pytest

from stacktrade.core.clock import BlockClock, ClockRegressionError, ManualBlockClock


class TestManualBlockClock:
    def test_starts_at_genesis(self):
        assert ManualBlockClock().current_block_height() == 100

    def test_custom_start(self):
        assert ManualBlockClock(start=0).current_block_height() == 0

    def test_advance(self):
        clock = ManualBlockClock(start=10)
        assert clock.advance() == 11
        assert clock.advance(4) == 15
        assert clock.current_block_height() == 15

    def test_cannot_go_backwards(self):
        with pytest.raises(ClockRegressionError):
            ManualBlockClock().advance(-1)

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            ManualBlockClock(start=-1)

    def test_satisfies_protocol(self):
        assert isinstance(ManualBlockClock(), BlockClock)
