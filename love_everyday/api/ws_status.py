"""WebSocket endpoint: streams a family's safety status to UI clients.

Path: /ws/families/{family_code}/status

Connecting starts monitoring for the family if it is not running yet and
immediately sends the current status.  Later updates (and critical alerts)
are pushed server-side through the ConnectionManager.  Clients may send
"ping" and receive "pong".

A monitor started only by stream clients is released when the last of
them disconnects.  Monitors started via POST /monitor keep running.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from love_everyday.services.connection_manager import ConnectionManager
from love_everyday.services.monitor_registry import MonitorRegistry
from love_everyday.services.status_monitor import MonitorConfigurationError

logger = logging.getLogger(__name__)


def create_status_stream_router(
    registry: MonitorRegistry,
    manager: ConnectionManager,
) -> APIRouter:
    """Factory that creates the status WebSocket endpoint."""

    router = APIRouter()

    @router.websocket("/ws/families/{family_code}/status")
    async def status_stream(websocket: WebSocket, family_code: str) -> None:
        await manager.connect(family_code, websocket)
        attached = False
        try:
            monitor = await registry.attach(family_code)
            attached = True
            await websocket.send_json(monitor.current_update().to_payload())

            # Keep the connection alive; updates are pushed server-side
            while True:
                data = await websocket.receive_text()
                if data.strip().lower() == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect:
            pass
        except MonitorConfigurationError as exc:
            logger.warning("Rejected status stream: %s", exc)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        finally:
            await manager.disconnect(family_code, websocket)
            if attached:
                await registry.detach(family_code)

    return router
