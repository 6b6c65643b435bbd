# This project was developed with assistance from AI tools.
"""Tests for registration, credential checks and session revocation."""

from datetime import UTC, datetime, timedelta

import pytest
from scopegate_db.enums import UserRole

from scopegate.core.errors import (
    DuplicateCredential,
    InvalidCredentials,
    InvalidRequest,
    ScopeMismatch,
)
from scopegate.schemas.auth import JoinRequest
from scopegate.services.principals import authenticate, is_session_revoked, join, revoke_session


def _request(email="ada@example.com", password="correct-horse", scope_id=None):
    return JoinRequest(email=email, password=password, name="Ada", scope_id=scope_id)


async def test_join_root_role(db_session, policy):
    claims = await join(db_session, policy, UserRole.APPLICANT, _request())
    assert claims.role == UserRole.APPLICANT
    assert claims.scope_path == ()
    assert claims.email == "ada@example.com"


async def test_join_scoped_role_binds_scope_path(db_session, policy, world):
    claims = await join(db_session, policy, UserRole.RECRUITER, _request(scope_id=world.org))
    assert claims.scope_path == (world.tenant, world.org)


async def test_join_normalizes_email(db_session, policy):
    claims = await join(db_session, policy, UserRole.USER, _request(email="  Ada@Example.COM "))
    assert claims.email == "ada@example.com"


async def test_duplicate_role_and_email_rejected(db_session, policy):
    await join(db_session, policy, UserRole.USER, _request())
    with pytest.raises(DuplicateCredential):
        await join(db_session, policy, UserRole.USER, _request(email="ADA@example.com"))


async def test_same_email_different_role_allowed(db_session, policy):
    first = await join(db_session, policy, UserRole.USER, _request())
    second = await join(db_session, policy, UserRole.APPLICANT, _request())
    assert first.id != second.id


async def test_scoped_role_requires_scope_id(db_session, policy):
    with pytest.raises(InvalidRequest, match="requires"):
        await join(db_session, policy, UserRole.NURSE, _request())


async def test_root_role_rejects_scope_id(db_session, policy, world):
    with pytest.raises(InvalidRequest, match="not bound"):
        await join(db_session, policy, UserRole.USER, _request(scope_id=world.org))


async def test_scope_level_must_match_role(db_session, policy, world):
    with pytest.raises(InvalidRequest, match="department"):
        await join(db_session, policy, UserRole.NURSE, _request(scope_id=world.org))


async def test_unknown_scope_rejected(db_session, policy):
    with pytest.raises(ScopeMismatch):
        await join(db_session, policy, UserRole.NURSE, _request(scope_id="nope"))


async def test_authenticate_success(db_session, policy, world):
    joined = await join(db_session, policy, UserRole.NURSE, _request(scope_id=world.department))
    claims = await authenticate(db_session, UserRole.NURSE, "ADA@example.com", "correct-horse")
    assert claims.id == joined.id
    assert claims.scope_path == (world.tenant, world.org, world.department)


async def test_authenticate_wrong_password(db_session, policy):
    await join(db_session, policy, UserRole.USER, _request())
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, UserRole.USER, "ada@example.com", "wrong-password")


async def test_authenticate_wrong_role(db_session, policy):
    await join(db_session, policy, UserRole.USER, _request())
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, UserRole.APPLICANT, "ada@example.com", "correct-horse")


async def test_revoke_session_is_idempotent(db_session):
    expires = datetime.now(UTC) + timedelta(days=1)
    assert not await is_session_revoked(db_session, "sid-1")

    await revoke_session(db_session, principal_id="p-1", session_id="sid-1", expires_at=expires)
    await revoke_session(db_session, principal_id="p-1", session_id="sid-1", expires_at=expires)

    assert await is_session_revoked(db_session, "sid-1")
    assert not await is_session_revoked(db_session, "sid-2")


async def test_revoke_session_prunes_expired_entries(db_session):
    now = datetime.now(UTC)
    await revoke_session(
        db_session,
        principal_id="p-1",
        session_id="sid-old",
        expires_at=now + timedelta(hours=1),
        now=now,
    )
    await revoke_session(
        db_session,
        principal_id="p-2",
        session_id="sid-new",
        expires_at=now + timedelta(days=3),
        now=now + timedelta(days=1),
    )

    assert not await is_session_revoked(db_session, "sid-old")
    assert await is_session_revoked(db_session, "sid-new")
