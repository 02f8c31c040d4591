"""Trade journal entry model (append-only, hash-chained).

The journal records every successful ledger write.  Rejected operations
never reach it.  Access tokens are never written to the journal.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JournalEventKind(str, Enum):
    """Ledger writes that are journaled."""

    CONTENT_REGISTERED = "content_registered"
    CONTENT_ACQUIRED = "content_acquired"


class JournalEntry(BaseModel):
    """A single sealed entry in the trade journal."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_kind: JournalEventKind
    item_id: int
    principal: str  # seller for registrations, buyer for acquisitions
    block_height: int
    details: dict[str, Any] = {}
    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed on append, seals this entry
