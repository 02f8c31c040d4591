"""Terminal views over the marketplace ledger."""

from stacktrade.monitor.renderer import LedgerRenderer

__all__ = ["LedgerRenderer"]
