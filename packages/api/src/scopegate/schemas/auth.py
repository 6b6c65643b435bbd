# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from scopegate_db.enums import UserRole
from scopegate_db.paths import ScopePath


class PrincipalClaims(BaseModel):
    """Identity facts a token is minted from."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: UserRole
    scope_path: tuple[str, ...] = ()
    email: str = ""
    name: str = ""


class Principal(BaseModel):
    """An authenticated actor. Threaded explicitly through every call."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: UserRole
    scope_path: tuple[str, ...] = ()
    email: str = ""
    name: str = ""
    session_id: str = ""
    issued_at: datetime
    expires_at: datetime

    @property
    def scope(self) -> ScopePath:
        return ScopePath(self.scope_path)


class TokenPayload(BaseModel):
    """Decoded JWT claims."""

    sub: str
    role: UserRole
    scope: list[str] = Field(default_factory=list)
    email: str = ""
    name: str = ""
    sid: str
    typ: str
    iat: int
    exp: int


class Token(BaseModel):
    access: str
    refresh: str
    expired_at: datetime
    refreshable_until: datetime


class JoinRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(default="", max_length=255)
    scope_id: str | None = Field(
        default=None,
        description="Scope the account is bound to. Omitted for root-level roles.",
    )


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh: str


class AuthorizedResponse(BaseModel):
    """Returned by join and login: who you are plus your token pair."""

    id: str
    role: UserRole
    email: str
    name: str
    scope_path: list[str]
    token: Token
