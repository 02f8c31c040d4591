"""Entry hashing for the trade journal."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """Hash a journal entry's JSON dump into its chain link.

    ``entry_hash`` is left out so the stored hash can be recomputed from
    the stored row.  Keys are sorted and separators compact, so the same
    entry always serializes to the same bytes.
    """
    payload = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()
    return hashlib.sha256(encoded).hexdigest()
