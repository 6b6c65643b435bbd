# This project was developed with assistance from AI tools.
"""Audit event service.

Writes append-only audit trail entries with a SHA-256 hash chain for tamper
evidence. On PostgreSQL an advisory transaction lock serializes hash
computation across concurrent writers. Events are flushed into the caller's
transaction so a mutation and its audit row commit or roll back together.
"""

import hashlib
import json
import logging
from datetime import UTC, datetime

from scopegate_db import AuditEvent
from scopegate_db.enums import Action
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import Principal

logger = logging.getLogger(__name__)

# Fixed advisory lock key for audit trail serialization.
AUDIT_LOCK_KEY = 900_001

RESOURCE_CREATED = "resource_created"
RESOURCE_UPDATED = "resource_updated"
RESOURCE_DELETED = "resource_deleted"
ACCESS_DENIED = "access_denied"
POLICY_GAP = "policy_gap"

GENESIS = "genesis"


def _normalize_timestamp(ts: datetime) -> str:
    # SQLite hands back naive UTC, PostgreSQL aware; hash the same text for both
    if ts.tzinfo is not None:
        ts = ts.astimezone(UTC).replace(tzinfo=None)
    return ts.isoformat()


def _compute_hash(event_id: int, timestamp: datetime, event_data: dict | None) -> str:
    """Compute SHA-256 hash of an audit event's key fields."""
    payload = (
        f"{event_id}|{_normalize_timestamp(timestamp)}|"
        f"{json.dumps(event_data, sort_keys=True, default=str)}"
    )
    return hashlib.sha256(payload.encode()).hexdigest()


async def _acquire_chain_lock(session: AsyncSession) -> None:
    if session.get_bind().dialect.name == "postgresql":
        # Released automatically when the transaction commits or rolls back.
        await session.execute(text(f"SELECT pg_advisory_xact_lock({AUDIT_LOCK_KEY})"))


async def write_audit_event(
    session: AsyncSession,
    *,
    event_type: str,
    principal: Principal | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    event_data: dict | None = None,
) -> AuditEvent:
    """Write a single audit event with hash chain linkage.

    Returns:
        The created AuditEvent row (with prev_hash set).
    """
    await _acquire_chain_lock(session)

    latest_stmt = select(AuditEvent).order_by(AuditEvent.id.desc()).limit(1)
    result = await session.execute(latest_stmt)
    prev_event = result.scalar_one_or_none()

    if prev_event is not None:
        prev_hash = _compute_hash(prev_event.id, prev_event.timestamp, prev_event.event_data)
    else:
        prev_hash = GENESIS

    audit = AuditEvent(
        event_type=event_type,
        principal_id=principal.id if principal else None,
        principal_role=principal.role.value if principal else None,
        resource_type=resource_type,
        resource_id=resource_id,
        event_data=event_data,
        prev_hash=prev_hash,
    )
    session.add(audit)
    await session.flush()
    return audit


async def record_denial(
    session: AsyncSession,
    principal: Principal,
    *,
    action: Action,
    resource_type: str,
    reason: str,
    resource_id: str | None = None,
) -> None:
    """Persist a denied access attempt in its own transaction.

    Missing rules are recorded as ``policy_gap`` (a configuration problem);
    everything else as ``access_denied``.
    """
    event_type = POLICY_GAP if reason == "no_such_rule" else ACCESS_DENIED
    await session.rollback()
    await write_audit_event(
        session,
        event_type=event_type,
        principal=principal,
        resource_type=resource_type,
        resource_id=resource_id,
        event_data={"action": action.value, "reason": reason},
    )
    await session.commit()


async def verify_audit_chain(session: AsyncSession) -> dict:
    """Recompute every link of the hash chain, oldest first.

    Returns ``{"status": "OK", "events_checked": n}``, or ``"TAMPERED"`` with
    ``first_break_id`` set to the first event whose ``prev_hash`` no longer
    matches its predecessor.
    """
    result = await session.execute(select(AuditEvent).order_by(AuditEvent.id.asc()))
    expected = GENESIS
    checked = 0
    for event in result.scalars():
        checked += 1
        if event.prev_hash != expected:
            logger.error("Audit chain broken at event %s", event.id)
            return {"status": "TAMPERED", "first_break_id": event.id, "events_checked": checked}
        expected = _compute_hash(event.id, event.timestamp, event.event_data)
    return {"status": "OK", "events_checked": checked}


async def get_events_for_resource(session: AsyncSession, resource_id: str) -> list[AuditEvent]:
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.resource_id == resource_id)
        .order_by(AuditEvent.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
