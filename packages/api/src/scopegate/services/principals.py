# This project was developed with assistance from AI tools.
"""Principal Store: registration, credential checks and session revocation."""

import logging
from datetime import UTC, datetime

from scopegate_db import Credential, RevokedSession, ScopeRepository
from scopegate_db.enums import UserRole
from scopegate_db.paths import ScopePath
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import DuplicateCredential, InvalidCredentials, InvalidRequest, ScopeMismatch
from ..core.policy import PolicyTable
from ..core.security import hash_password, verify_password
from ..schemas.auth import JoinRequest, PrincipalClaims

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _claims(credential: Credential) -> PrincipalClaims:
    return PrincipalClaims(
        id=credential.id,
        role=credential.role,
        scope_path=credential.scope.segments,
        email=credential.email,
        name=credential.name,
    )


async def _find_credential(session: AsyncSession, role: UserRole, email: str) -> Credential | None:
    stmt = select(Credential).where(Credential.role == role, Credential.email == email)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _scope_for_role(
    session: AsyncSession,
    policy: PolicyTable,
    role: UserRole,
    scope_id: str | None,
) -> ScopePath:
    level = policy.role_level(role)
    if level is None:
        if scope_id is not None:
            raise InvalidRequest(f"Role {role.value} is not bound to a scope")
        return ScopePath.root()

    if scope_id is None:
        raise InvalidRequest(f"Role {role.value} requires a {level.value} scope_id")
    node = await ScopeRepository(session).get(scope_id, include_deleted=False)
    if node is None:
        raise ScopeMismatch("Scope not found")
    if node.level != level:
        raise InvalidRequest(f"Role {role.value} must join a {level.value} scope")
    return node.scope


async def join(
    session: AsyncSession,
    policy: PolicyTable,
    role: UserRole,
    request: JoinRequest,
) -> PrincipalClaims:
    """Register a credential for (role, email) and return its claims."""
    email = _normalize_email(request.email)
    if await _find_credential(session, role, email) is not None:
        raise DuplicateCredential()

    scope = await _scope_for_role(session, policy, role, request.scope_id)
    credential = Credential(
        role=role,
        email=email,
        name=request.name,
        password_hash=hash_password(request.password),
        scope_path=scope.encode(),
    )
    session.add(credential)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateCredential() from exc
    claims = _claims(credential)
    await session.commit()

    logger.info("Registered %s principal %s in scope %s", role.value, claims.id, scope)
    return claims


async def authenticate(
    session: AsyncSession,
    role: UserRole,
    email: str,
    password: str,
) -> PrincipalClaims:
    """Check credentials for (role, email). Raises InvalidCredentials."""
    credential = await _find_credential(session, role, _normalize_email(email))
    if credential is None or not verify_password(credential.password_hash, password):
        logger.info("Failed login for role=%s", role.value)
        raise InvalidCredentials()
    return _claims(credential)


async def revoke_session(
    session: AsyncSession,
    *,
    principal_id: str,
    session_id: str,
    expires_at: datetime,
    now: datetime | None = None,
) -> None:
    """Record a logout. Entries whose tokens have all expired are pruned first."""
    now = now or datetime.now(UTC)
    pruned = await session.execute(delete(RevokedSession).where(RevokedSession.expires_at < now))
    if pruned.rowcount:
        logger.info("Pruned %d expired session revocations", pruned.rowcount)
    if not await is_session_revoked(session, session_id):
        session.add(
            RevokedSession(
                session_id=session_id, principal_id=principal_id, expires_at=expires_at
            )
        )
    await session.commit()
    logger.info("Revoked session %s for principal %s", session_id, principal_id)


async def is_session_revoked(session: AsyncSession, session_id: str) -> bool:
    stmt = select(RevokedSession.session_id).where(RevokedSession.session_id == session_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is not None
