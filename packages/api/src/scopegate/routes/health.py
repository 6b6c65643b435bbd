# This project was developed with assistance from AI tools.
"""Liveness and readiness probes."""

from fastapi import APIRouter, Depends
from scopegate_db import DatabaseService, get_db_service

router = APIRouter()


@router.get("/")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
async def ready(db: DatabaseService = Depends(get_db_service)) -> dict[str, str]:
    database = "ok" if await db.health_check() else "unavailable"
    return {"status": "ok" if database == "ok" else "degraded", "database": database}
