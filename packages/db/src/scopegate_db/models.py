# This project was developed with assistance from AI tools.
"""
ScopeGate -- domain models

Credentials, the scope node registry, generic scoped resources, revoked
sessions and the append-only audit trail.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from .database import Base
from .enums import ScopeLevel, UserRole
from .paths import ScopePath


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Credential(Base):
    """One login record per (role, email) pair."""

    __tablename__ = "credentials"
    __table_args__ = (UniqueConstraint("role", "email", name="uq_credential_role_email"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    role = Column(Enum(UserRole, name="user_role", native_enum=False), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    scope_path = Column(String(1024), nullable=False, default="/")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    @property
    def scope(self) -> ScopePath:
        return ScopePath.decode(self.scope_path)

    def __repr__(self):
        return f"<Credential(id={self.id}, role='{self.role}', email='{self.email}')>"


class ScopeNode(Base):
    """A typed container segment (tenant, organization, department, ...)."""

    __tablename__ = "scopes"

    id = Column(String(36), primary_key=True)
    level = Column(Enum(ScopeLevel, name="scope_level", native_enum=False), nullable=False)
    parent_id = Column(String(36), ForeignKey("scopes.id"), nullable=True, index=True)
    path = Column(String(1024), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def scope(self) -> ScopePath:
        return ScopePath.decode(self.path)

    def __repr__(self):
        return f"<ScopeNode(id={self.id}, level='{self.level}')>"


class Resource(Base):
    """Generic scoped resource. Payload is opaque to the access layer.

    ``deleted_at`` is monotonic: set once by soft delete, never cleared.
    ``version`` is the optimistic concurrency counter.
    """

    __tablename__ = "resources"

    id = Column(String(36), primary_key=True, default=_new_id)
    resource_type = Column(String(64), nullable=False, index=True)
    owner_scope_path = Column(String(1024), nullable=False, index=True)
    created_by = Column(String(36), nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    __mapper_args__ = {"version_id_col": version}

    @property
    def owner_scope(self) -> ScopePath:
        return ScopePath.decode(self.owner_scope_path)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Resource(id={self.id}, type='{self.resource_type}')>"


class RevokedSession(Base):
    """Session ids invalidated by logout. Checked on every authenticated call."""

    __tablename__ = "revoked_sessions"

    session_id = Column(String(64), primary_key=True)
    principal_id = Column(String(36), nullable=False, index=True)
    revoked_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    prev_hash = Column(String(64), nullable=True)
    principal_id = Column(String(36), nullable=True, index=True)
    principal_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    resource_type = Column(String(64), nullable=True)
    resource_id = Column(String(36), nullable=True, index=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
