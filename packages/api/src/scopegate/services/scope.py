# This project was developed with assistance from AI tools.
"""Scope Resolver.

Computes the effective scope path for a call from the principal's own path
and an optional scope hint (e.g. an organization id supplied by the caller).
Resolution never widens authority: a hint outside the principal's chain
fails with ScopeMismatch. Root-scoped principals (empty path) resolve every
hint; there is no separate code path for "global" roles.
"""

import logging
from dataclasses import dataclass

from scopegate_db import ScopeRepository
from scopegate_db.enums import ScopeLevel
from scopegate_db.paths import ScopePath
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ScopeMismatch
from ..schemas.auth import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedScope:
    path: ScopePath
    level: ScopeLevel | None = None


def resolve_scope_path(principal_scope: ScopePath, target: ScopePath) -> ScopePath:
    """Return ``target`` if ``principal_scope`` covers it, else raise ScopeMismatch."""
    if not principal_scope.covers(target):
        raise ScopeMismatch()
    return target


async def resolve_scope(
    session: AsyncSession,
    principal: Principal,
    scope_hint: str | None = None,
    *,
    for_write: bool = False,
) -> ResolvedScope:
    """Resolve the scope a call operates in.

    Without a hint the principal's own scope is used. ``for_write`` treats
    a scope as nonexistent when it or any ancestor is soft-deleted, so nothing
    new is created under a closed container.
    """
    target_id = scope_hint or principal.scope.leaf
    if target_id is None:
        return ResolvedScope(path=ScopePath.root())

    scopes = ScopeRepository(session)
    node = await scopes.get(target_id, include_deleted=not for_write)
    if node is not None and for_write and await scopes.any_deleted(node.scope):
        node = None
    if node is None:
        logger.warning(
            "Scope %s not resolvable for principal=%s role=%s",
            target_id,
            principal.id,
            principal.role.value,
        )
        raise ScopeMismatch()

    try:
        path = resolve_scope_path(principal.scope, node.scope)
    except ScopeMismatch:
        logger.warning(
            "Scope mismatch: principal=%s scope=%s requested=%s",
            principal.id,
            principal.scope,
            node.scope,
        )
        raise
    return ResolvedScope(path=path, level=node.level)
