# This project was developed with assistance from AI tools.
"""Join, login, token refresh and logout."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from scopegate_db import get_db
from scopegate_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import SessionRevoked
from ..core.policy import PolicyTable, get_policy
from ..core.tokens import TokenService, get_token_service
from ..middleware.auth import CurrentPrincipal
from ..schemas.auth import (
    AuthorizedResponse,
    JoinRequest,
    LoginRequest,
    PrincipalClaims,
    RefreshRequest,
    Token,
)
from ..services import principals

router = APIRouter()


def _authorized(claims: PrincipalClaims, token: Token) -> AuthorizedResponse:
    return AuthorizedResponse(
        id=claims.id,
        role=claims.role,
        email=claims.email,
        name=claims.name,
        scope_path=list(claims.scope_path),
        token=token,
    )


@router.post(
    "/{role}/join",
    response_model=AuthorizedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join(
    role: UserRole,
    body: JoinRequest,
    session: AsyncSession = Depends(get_db),
    policy: PolicyTable = Depends(get_policy),
    tokens: TokenService = Depends(get_token_service),
) -> AuthorizedResponse:
    """Register a new account for ``role`` and sign it in."""
    claims = await principals.join(session, policy, role, body)
    return _authorized(claims, tokens.issue(claims))


@router.post("/{role}/login", response_model=AuthorizedResponse)
async def login(
    role: UserRole,
    body: LoginRequest,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthorizedResponse:
    """Exchange credentials for a fresh token pair."""
    claims = await principals.authenticate(session, role, body.email, body.password)
    return _authorized(claims, tokens.issue(claims))


@router.post("/refresh", response_model=Token)
async def refresh(
    body: RefreshRequest,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Token:
    """Mint a new token pair from a refresh token of a live session."""
    payload = tokens.decode_refresh(body.refresh)
    if await principals.is_session_revoked(session, payload.sid):
        raise SessionRevoked()
    return tokens.refresh(body.refresh)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    principal: CurrentPrincipal,
    session: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> None:
    """Revoke the caller's session (both its access and refresh token)."""
    await principals.revoke_session(
        session,
        principal_id=principal.id,
        session_id=principal.session_id,
        expires_at=max(principal.issued_at + tokens.refresh_ttl, datetime.now(UTC)),
    )
