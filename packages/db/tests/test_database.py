# This project was developed with assistance from AI tools.
"""DatabaseService tests against in-memory SQLite."""

from sqlalchemy import inspect, text

from scopegate_db import DatabaseService


async def test_database_connection(engine):
    """Test database connection."""
    async with engine.begin() as conn:
        result = await conn.execute(text("SELECT 1"))
        assert result.scalar() == 1


async def test_health_check(engine):
    assert await DatabaseService(engine).health_check() is True


async def test_drop_and_create_all(engine):
    service = DatabaseService(engine)
    await service.drop_all()
    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync: inspect(sync).get_table_names())
    assert tables == []

    await service.create_all()
    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync: inspect(sync).get_table_names())
    assert {"credentials", "scopes", "resources", "revoked_sessions", "audit_events"} <= set(
        tables
    )
