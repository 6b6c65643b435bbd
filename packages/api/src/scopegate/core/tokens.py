# This project was developed with assistance from AI tools.
"""Token Service: issue, validate and refresh signed session tokens.

Tokens are opaque to every other component. Access and refresh tokens of
one login share a session id (``sid``) so logout can revoke both at once;
``typ`` tells them apart. Validation is a bounded, synchronous computation
with no I/O -- the revocation lookup happens in the request dependency.
"""

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError

from ..schemas.auth import Principal, PrincipalClaims, Token, TokenPayload
from .config import settings
from .errors import TokenExpired, TokenMalformed

ACCESS = "access"
REFRESH = "refresh"


class TokenService:
    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def issue(
        self,
        claims: PrincipalClaims,
        *,
        now: datetime | None = None,
        session_id: str | None = None,
    ) -> Token:
        now = now or datetime.now(UTC)
        sid = session_id or uuid.uuid4().hex
        expires_at = now + self.access_ttl
        refreshable_until = now + self.refresh_ttl
        return Token(
            access=self._encode(claims, sid, ACCESS, now, expires_at),
            refresh=self._encode(claims, sid, REFRESH, now, refreshable_until),
            expired_at=expires_at,
            refreshable_until=refreshable_until,
        )

    def validate(self, token: str) -> Principal:
        """Decode an access token into a Principal.

        Raises:
            TokenExpired: ``now > exp``.
            TokenMalformed: bad signature, bad structure or wrong token type.
        """
        payload = self._decode(token, expected_type=ACCESS)
        return Principal(
            id=payload.sub,
            role=payload.role,
            scope_path=tuple(payload.scope),
            email=payload.email,
            name=payload.name,
            session_id=payload.sid,
            issued_at=datetime.fromtimestamp(payload.iat, UTC),
            expires_at=datetime.fromtimestamp(payload.exp, UTC),
        )

    def refresh(self, refresh_token: str, *, now: datetime | None = None) -> Token:
        """Mint a new pair from a refresh token, keeping the session id."""
        payload = self.decode_refresh(refresh_token)
        claims = PrincipalClaims(
            id=payload.sub,
            role=payload.role,
            scope_path=tuple(payload.scope),
            email=payload.email,
            name=payload.name,
        )
        return self.issue(claims, now=now, session_id=payload.sid)

    def decode_refresh(self, refresh_token: str) -> TokenPayload:
        return self._decode(refresh_token, expected_type=REFRESH)

    def _encode(
        self,
        claims: PrincipalClaims,
        sid: str,
        token_type: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> str:
        body = {
            "sub": claims.id,
            "role": claims.role.value,
            "scope": list(claims.scope_path),
            "email": claims.email,
            "name": claims.name,
            "sid": sid,
            "typ": token_type,
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(body, self._secret, algorithm=self._algorithm)

    def _decode(self, token: str, *, expected_type: str) -> TokenPayload:
        try:
            raw = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformed() from exc

        try:
            payload = TokenPayload(**raw)
        except ValidationError as exc:
            raise TokenMalformed() from exc
        if payload.typ != expected_type:
            raise TokenMalformed(f"Expected {expected_type} token")
        return payload


_service: TokenService | None = None


def get_token_service() -> TokenService:
    """Process-wide TokenService built from settings."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = TokenService(
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS),
        )
    return _service
