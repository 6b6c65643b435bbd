# This project was developed with assistance from AI tools.
"""Lifecycle Manager: create, read, update and soft-delete scoped resources.

State machine per resource::

    Active --update--> Active      (bumps updated_at)
    Active --soft-delete--> Deleted (terminal)

Every operation runs the Access Guard before touching the row. Mutations
load the row ``FOR UPDATE`` and write their audit event in the same
transaction, so a racing update and delete produce exactly one winner and
the loser sees AlreadyDeleted or VersionConflict.
"""

import logging
import uuid
from datetime import UTC, datetime

from scopegate_db import RecordDeleted, RecordNotFound, Resource, ResourceRepository, ScopeRepository
from scopegate_db.enums import Action
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..core.access import ResourceRef, authorize, deny_error, log_denial
from ..core.errors import AlreadyDeleted, InvalidRequest, NotFound, ScopeMismatch, VersionConflict
from ..core.policy import PolicyTable, ResourceTypeSpec
from ..schemas.auth import Principal
from .audit import (
    RESOURCE_CREATED,
    RESOURCE_DELETED,
    RESOURCE_UPDATED,
    record_denial,
    write_audit_event,
)
from .scope import resolve_scope

logger = logging.getLogger(__name__)


def require_resource_type(policy: PolicyTable, resource_type: str) -> ResourceTypeSpec:
    spec = policy.resource_type(resource_type)
    if spec is None:
        raise NotFound(f"Unknown resource type {resource_type!r}")
    return spec


def _check_payload(spec: ResourceTypeSpec, payload: dict) -> None:
    mistyped = spec.mistyped_fields(payload)
    if mistyped:
        expected = ", ".join(f"{name} ({spec.fields[name].value})" for name in mistyped)
        raise InvalidRequest(f"Payload fields have the wrong type: {expected}")


async def _guard(
    session: AsyncSession,
    policy: PolicyTable,
    principal: Principal,
    action: Action,
    ref: ResourceRef,
) -> None:
    decision = authorize(policy, principal, action, ref)
    if decision.allowed:
        return
    log_denial(principal, action, ref, decision)
    await record_denial(
        session,
        principal,
        action=action,
        resource_type=ref.resource_type,
        resource_id=ref.id,
        reason=decision.reason.value,
    )
    raise deny_error(decision)


async def _load(
    session: AsyncSession,
    resource_type: str,
    resource_id: str,
    *,
    for_update: bool = False,
) -> Resource:
    resource = await ResourceRepository(session).get(
        resource_type, resource_id, for_update=for_update
    )
    if resource is None:
        raise NotFound()
    return resource


async def create_resource(
    session: AsyncSession,
    policy: PolicyTable,
    principal: Principal,
    resource_type: str,
    payload: dict,
    scope_hint: str | None = None,
) -> Resource:
    """Create a resource owned by the resolved scope.

    Raises:
        NotFound: unknown resource type.
        ScopeMismatch: hint unknown, deleted, or outside the principal's scope.
        InvalidRequest: the resolved scope has the wrong level for this type,
            or a declared payload field has the wrong type.
        NoSuchRule / ScopeViolation: denied by the Access Guard.
    """
    spec = require_resource_type(policy, resource_type)
    _check_payload(spec, payload)
    try:
        resolved = await resolve_scope(session, principal, scope_hint, for_write=True)
    except ScopeMismatch:
        await record_denial(
            session,
            principal,
            action=Action.CREATE,
            resource_type=resource_type,
            reason="scope_mismatch",
        )
        raise

    if resolved.level != spec.parent_level:
        expected = spec.parent_level.value if spec.parent_level else "root"
        raise InvalidRequest(f"{resource_type} must be created under a {expected} scope")

    ref = ResourceRef(
        resource_type=resource_type,
        owner_scope=resolved.path,
        created_by=principal.id,
    )
    await _guard(session, policy, principal, Action.CREATE, ref)

    now = datetime.now(UTC)
    resource = await ResourceRepository(session).create(
        resource_type,
        payload,
        resolved.path,
        created_by=principal.id,
        now=now,
        resource_id=str(uuid.uuid4()),
    )
    if spec.opens_scope is not None:
        await ScopeRepository(session).create(resource.id, spec.opens_scope, resolved.path, now=now)

    await write_audit_event(
        session,
        event_type=RESOURCE_CREATED,
        principal=principal,
        resource_type=resource_type,
        resource_id=resource.id,
        event_data={"scope": resolved.path.encode()},
    )
    await session.commit()

    logger.info(
        "Created %s %s in %s by %s", resource_type, resource.id, resolved.path, principal.id
    )
    return resource


async def get_resource(
    session: AsyncSession,
    policy: PolicyTable,
    principal: Principal,
    resource_type: str,
    resource_id: str,
) -> Resource:
    """Read one resource. Soft-deleted rows are returned, marked deleted."""
    require_resource_type(policy, resource_type)
    resource = await _load(session, resource_type, resource_id)
    await _guard(session, policy, principal, Action.READ, ResourceRef.from_model(resource))
    return resource


async def update_resource(
    session: AsyncSession,
    policy: PolicyTable,
    principal: Principal,
    resource_type: str,
    resource_id: str,
    patch: dict,
) -> Resource:
    """Apply a partial payload patch and bump ``updated_at``."""
    spec = require_resource_type(policy, resource_type)
    _check_payload(spec, patch)
    resource = await _load(session, resource_type, resource_id, for_update=True)
    await _guard(session, policy, principal, Action.UPDATE, ResourceRef.from_model(resource))

    try:
        resource = await ResourceRepository(session).update(
            resource_type, resource_id, patch, now=datetime.now(UTC)
        )
        await write_audit_event(
            session,
            event_type=RESOURCE_UPDATED,
            principal=principal,
            resource_type=resource_type,
            resource_id=resource_id,
            event_data={"fields": sorted(patch)},
        )
        await session.commit()
    except RecordDeleted as exc:
        await session.rollback()
        raise AlreadyDeleted() from exc
    except RecordNotFound as exc:
        await session.rollback()
        raise NotFound() from exc
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("Concurrent modification of %s %s", resource_type, resource_id)
        raise VersionConflict() from exc

    logger.info("Updated %s %s by %s", resource_type, resource_id, principal.id)
    return resource


async def soft_delete_resource(
    session: AsyncSession,
    policy: PolicyTable,
    principal: Principal,
    resource_type: str,
    resource_id: str,
) -> Resource:
    """Mark a resource deleted. A second call fails with AlreadyDeleted."""
    spec = require_resource_type(policy, resource_type)
    resource = await _load(session, resource_type, resource_id, for_update=True)
    await _guard(session, policy, principal, Action.DELETE, ResourceRef.from_model(resource))

    now = datetime.now(UTC)
    try:
        resource = await ResourceRepository(session).soft_delete(resource_type, resource_id, now=now)
        if spec.opens_scope is not None:
            await ScopeRepository(session).mark_deleted(resource_id, now=now)
        await write_audit_event(
            session,
            event_type=RESOURCE_DELETED,
            principal=principal,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        await session.commit()
    except RecordDeleted as exc:
        await session.rollback()
        raise AlreadyDeleted() from exc
    except RecordNotFound as exc:
        await session.rollback()
        raise NotFound() from exc
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("Concurrent modification of %s %s", resource_type, resource_id)
        raise VersionConflict() from exc

    logger.info("Soft-deleted %s %s by %s", resource_type, resource_id, principal.id)
    return resource
