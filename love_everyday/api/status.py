"""REST endpoints for safety monitoring.

Paths:
    POST   /api/families/{family_code}/monitor
    DELETE /api/families/{family_code}/monitor
    POST   /api/families/{family_code}/monitor/retry
    GET    /api/families/{family_code}/status
    POST   /api/families/{family_code}/alert/clear
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from love_everyday.models.alert import ClearAlertResult
from love_everyday.services.monitor_registry import MonitorRegistry
from love_everyday.services.status_monitor import MonitorConfigurationError, StatusMonitor

logger = logging.getLogger(__name__)

CLEAR_SUCCESS_MESSAGE = "안전 상태를 확인했습니다."
CLEAR_FAILURE_MESSAGE = "안전 확인에 실패했습니다."


def create_status_router(registry: MonitorRegistry) -> APIRouter:
    """Factory that wires the monitoring endpoints to a MonitorRegistry."""

    router = APIRouter(prefix="/api/families", tags=["status"])

    def _require(family_code: str) -> StatusMonitor:
        monitor = registry.get(family_code)
        if monitor is None:
            raise HTTPException(
                status_code=404, detail=f"Family {family_code} is not being monitored"
            )
        return monitor

    @router.post("/{family_code}/monitor")
    async def start_monitoring(family_code: str) -> dict[str, Any]:
        try:
            monitor = await registry.ensure_started(family_code)
        except MonitorConfigurationError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return monitor.current_update().to_payload()

    @router.delete("/{family_code}/monitor")
    async def stop_monitoring(family_code: str) -> dict[str, Any]:
        stopped = await registry.stop(family_code)
        if not stopped:
            raise HTTPException(
                status_code=404, detail=f"Family {family_code} is not being monitored"
            )
        return {"status": "stopped", "family_code": family_code}

    @router.post("/{family_code}/monitor/retry")
    async def retry_monitoring(family_code: str) -> dict[str, Any]:
        monitor = _require(family_code)
        try:
            await monitor.retry()
        except MonitorConfigurationError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return monitor.current_update().to_payload()

    @router.get("/{family_code}/status")
    async def get_status(family_code: str) -> dict[str, Any]:
        return _require(family_code).current_update().to_payload()

    @router.post("/{family_code}/alert/clear")
    async def clear_alert(family_code: str) -> dict[str, Any]:
        monitor = _require(family_code)
        success = await monitor.clear_critical_alert(family_code)
        result = ClearAlertResult(
            success=success,
            message=CLEAR_SUCCESS_MESSAGE if success else CLEAR_FAILURE_MESSAGE,
        )
        return result.model_dump()

    return router
