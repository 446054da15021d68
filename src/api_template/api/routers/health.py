"""
api_template.api.routers.health

Service-default health endpoints.

Responsibilities:
- Provide liveness probe (`/alive`).
- Provide health probe (`/health`) reporting the environment name.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api_template.api.deps import settings_dep
from api_template.settings import Settings

router = APIRouter()


@router.get("/alive")
async def alive() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}


@router.get("/health")
async def health(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    # No downstream dependencies to probe; healthy once the app is composed.
    return {"status": "healthy", "environment": settings.environment}


# --- Module Notes -----------------------------------------------------------
# Orchestrators typically use /alive for liveness and /health for readiness gating.
