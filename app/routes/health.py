# app/routes/health.py
"""
Health check endpoints.
"""

import time
from datetime import UTC, datetime

from fastapi import APIRouter

from app.dependencies import services
from app.infrastructure.observability.logging import log_health_check

router = APIRouter()


@router.get("/health")
async def health():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/readyz")
async def readyz():
    """Readiness check for the session store and configured collaborators."""
    checks = {}
    overall_ok = True

    t0 = time.time()
    if services.store is None:
        checks["session_store"] = {"ok": False, "error": "not initialized"}
        overall_ok = False
    else:
        store_ok = await services.store.ping()
        latency_ms = round((time.time() - t0) * 1000, 1)
        checks["session_store"] = {
            "ok": store_ok,
            "backend": services.store.backend,
            "latency_ms": latency_ms,
        }
        log_health_check("session_store", store_ok, latency_ms)
        overall_ok = overall_ok and store_ok

    checks["language_model"] = {"ok": services.model is not None}
    overall_ok = overall_ok and services.model is not None

    # HubSpot is optional; sample deals are served without it
    checks["hubspot"] = {"ok": True, "enabled": bool(services.deals and services.deals.enabled)}

    return {"overall_ok": overall_ok, "checks": checks}
