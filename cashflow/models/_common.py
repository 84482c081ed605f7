"""Column helpers shared by every ledger model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Return an opaque identifier for a new row."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
