# This project was developed with assistance from AI tools.
"""
Bearer token authentication for FastAPI routes.

Validates access tokens with the Token Service, rejects revoked sessions,
and provides dependencies for route-level role checks. There is no ambient
session state: every handler receives the Principal explicitly.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request
from scopegate_db import get_db
from scopegate_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import Forbidden, RoleMismatch, SessionRevoked, Unauthenticated
from ..core.tokens import TokenService, get_token_service
from ..schemas.auth import Principal
from ..services.principals import is_session_revoked

logger = logging.getLogger(__name__)


def _extract_token(request: Request) -> str | None:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


async def get_current_principal(
    request: Request,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """FastAPI dependency: validate the access token and return the Principal."""
    token = _extract_token(request)
    if not token:
        raise Unauthenticated("Missing authentication token")

    principal = tokens.validate(token)
    if await is_session_revoked(session, principal.session_id):
        raise SessionRevoked()
    return principal


# Type alias for use in route signatures
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: restrict a route to specific roles.

    Usage:
        @router.get("/admin-only", dependencies=[Depends(require_roles(UserRole.SYSTEM_ADMIN))])
    """

    async def _check(principal: CurrentPrincipal) -> Principal:
        if principal.role not in allowed_roles:
            logger.warning(
                "RBAC denied: principal=%s role=%s attempted route requiring %s",
                principal.id,
                principal.role.value,
                [r.value for r in allowed_roles],
            )
            raise Forbidden()
        return principal

    return _check


def ensure_route_role(principal: Principal, role: UserRole) -> None:
    """Role-prefixed routes only serve principals of that role."""
    if principal.role != role:
        logger.warning(
            "Role mismatch: principal=%s role=%s called %s route",
            principal.id,
            principal.role.value,
            role.value,
        )
        raise RoleMismatch()
