"""Health check endpoints.

- /health        liveness (process is up)
- /health/ready  readiness (tenant registry reachable)
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def liveness() -> dict[str, Any]:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness(request: Request) -> JSONResponse:
    database = getattr(request.app.state, "database", None)
    if database is None:
        return JSONResponse({"status": "healthy", "database": "not configured"})

    if await database.health_check():
        return JSONResponse({"status": "healthy", "database": "ok"})
    return JSONResponse({"status": "unhealthy", "database": "unreachable"}, status_code=503)
