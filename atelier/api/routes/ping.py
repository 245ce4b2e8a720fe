from typing import Any

from fastapi import APIRouter, HTTPException, Request

from atelier.services.postgres import PostgresConnectionTester

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Liveness check")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready", summary="Readiness of the ticket store")
async def ready(request: Request) -> dict[str, Any]:
    tester: PostgresConnectionTester | None = getattr(request.app.state, "postgres_tester", None)
    if tester is None:
        raise HTTPException(status_code=503, detail="Database is not configured")

    readiness = await tester.readiness()
    if not readiness.ready:
        raise HTTPException(status_code=503, detail=readiness.detail or "Database is not ready")
    return {
        "status": "ok",
        "database": readiness.database,
        "tickets_schema": readiness.tickets_schema,
        "latency_ms": readiness.latency_ms,
    }
