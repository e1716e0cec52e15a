"""System health endpoints for frontend polling."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from ...config import Settings
from ...infra.metrics import get_metrics_client
from ..dependencies import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/healthz")
def healthcheck(
    request: Request, settings: Settings = Depends(get_settings)
) -> dict[str, Any]:
    """Return coarse-grained backend readiness information."""

    session = getattr(request.app.state, "screen_session", None)
    return {
        "status": "ok",
        "environment": settings.environment,
        "entryStore": settings.store.backend,
        "collection": settings.store.collection,
        "subscription": session.state.value if session is not None else "inactive",
        "metrics": get_metrics_client().snapshot(),
    }
