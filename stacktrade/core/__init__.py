"""Core ledger machinery: clock, ledger, journal, and persistence."""
