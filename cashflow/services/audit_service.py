"""
Audit trail for ledger mutations.

``record`` only stages an ``AuditLog`` row on the store; it is meant to be
called inside the caller's ``atomic()`` block so the audit entry commits or
rolls back together with the mutation it describes.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from cashflow.models import AuditLog
from cashflow.store import LedgerStore

logger = logging.getLogger(__name__)


def _jsonable(values: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert Decimal and date values so the dict fits a JSON column."""
    if values is None:
        return None
    out: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, Decimal):
            out[key] = str(value)
        elif isinstance(value, (date, datetime)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


def record(
    store: LedgerStore,
    family_id: str,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> AuditLog:
    entry = AuditLog(
        family_id=family_id,
        family_member_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_values=_jsonable(old_values),
        new_values=_jsonable(new_values),
    )
    store.add(entry)
    logger.debug("audit: %s %s %s by %s", action, entity_type, entity_id, actor_id)
    return entry
