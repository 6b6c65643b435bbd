# This project was developed with assistance from AI tools.
"""Admin endpoints, health probes and the error envelope."""

from scopegate_db import AuditEvent
from scopegate_db.enums import UserRole
from sqlalchemy import update


async def test_health(client_factory):
    client = await client_factory()
    resp = await client.get("/health/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    await client.aclose()


async def test_ready_checks_database(client_factory):
    client = await client_factory()
    resp = await client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "ok"}
    await client.aclose()


async def test_audit_verify_ok(client_factory, world, bearer):
    client = await client_factory()
    resp = await client.get("/api/admin/audit/verify", headers=bearer(world.admin))
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "OK"
    assert data["events_checked"] == 6
    await client.aclose()


async def test_audit_verify_detects_tampering(client_factory, world, bearer, db_session):
    await db_session.execute(
        update(AuditEvent).where(AuditEvent.id == 3).values(event_data={"forged": True})
    )
    await db_session.commit()

    client = await client_factory()
    resp = await client.get("/api/admin/audit/verify", headers=bearer(world.admin))
    data = resp.json()
    assert data["status"] == "TAMPERED"
    assert data["first_break_id"] == 4
    await client.aclose()


async def test_audit_verify_requires_system_admin(client_factory, world, make_principal, bearer):
    org_admin = make_principal(UserRole.ORGANIZATION_ADMIN, (world.tenant, world.org))
    client = await client_factory()
    resp = await client.get("/api/admin/audit/verify", headers=bearer(org_admin))
    assert resp.status_code == 403
    await client.aclose()


async def test_policy_rules_listing(client_factory, world, bearer, policy):
    client = await client_factory()
    resp = await client.get("/api/admin/policy/rules", headers=bearer(world.admin))
    assert resp.status_code == 200
    data = resp.json()
    assert data["count"] == len(policy)
    assert {"role", "action", "resource_type", "scope_relation"} <= set(data["rules"][0])
    await client.aclose()


async def test_error_envelope_shape(client_factory):
    client = await client_factory()
    resp = await client.get("/api/admin/audit/verify", headers={"x-request-id": "req-42"})
    assert resp.status_code == 401
    body = resp.json()
    assert body == {
        "type": "about:blank",
        "title": "Unauthorized",
        "status": 401,
        "detail": "Missing authentication token",
        "request_id": "req-42",
        "instance": "/api/admin/audit/verify",
    }
    await client.aclose()


async def test_resource_history(client_factory, world, bearer):
    client = await client_factory()
    headers = bearer(world.admin)
    url = f"/api/system_admin/department/{world.department}"
    assert (await client.delete(url, headers=headers)).status_code == 204
    assert (await client.delete(url, headers=headers)).status_code == 403

    resp = await client.get(f"/api/admin/audit/resources/{world.department}", headers=headers)
    assert resp.status_code == 200
    events = resp.json()
    assert [e["event_type"] for e in events] == [
        "resource_created",
        "resource_deleted",
        "access_denied",
    ]
    assert events[-1]["principal_role"] == "system_admin"
    await client.aclose()
