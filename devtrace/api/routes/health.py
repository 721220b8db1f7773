from __future__ import annotations

from fastapi import APIRouter

from devtrace.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check reporting the configured environment label."""

    return {"status": "ok", "environment": settings.app_env}
