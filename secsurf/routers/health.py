"""
routers/health.py

Liveness and service info endpoints.

- /healthz → "Is the process up?"
- /        → service name, stage, and which HSTS policy is active
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse


router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz():
    """Liveness probe. No dependencies are checked."""
    return JSONResponse({"status": "ok"})


@router.get("/")
async def root(request: Request):
    s = request.app.state.settings
    return JSONResponse({
        "service": s.APP_NAME,
        "stage": s.APP_STAGE,
        "hsts": request.app.state.hsts_policy,
    })
