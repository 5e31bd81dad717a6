"""Health check endpoints."""

import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter

from securedata.api.deps import SupervisorDep

router = APIRouter()

_started_at = time.monotonic()


@router.get("/health")
async def health_check(supervisor: SupervisorDep) -> dict[str, Any]:
    """
    Report service and database health.

    Returns:
        dict with overall status, database connection status and uptime
    """
    database = supervisor.status()
    return {
        "status": "healthy" if database["connected"] else "degraded",
        "timestamp": datetime.now().isoformat(),
        "database": database,
        "server": {"uptime": round(time.monotonic() - _started_at, 3)},
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Kubernetes-style liveness probe.

    Returns:
        Simple OK response if the service is running
    """
    return {"status": "ok"}
