"""Manages WebSocket connections of UI clients, grouped by family code."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks connected UI clients per family and broadcasts to them."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, family_code: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.setdefault(family_code, set()).add(websocket)
        logger.info("UI client connected for family %s (%d total)",
                    family_code, self.active_count(family_code))

    async def disconnect(self, family_code: str, websocket: WebSocket) -> None:
        async with self._lock:
            clients = self._connections.get(family_code)
            if clients is not None:
                clients.discard(websocket)
                if not clients:
                    del self._connections[family_code]
        logger.info("UI client disconnected for family %s (%d remaining)",
                    family_code, self.active_count(family_code))

    def active_count(self, family_code: str | None = None) -> int:
        if family_code is not None:
            return len(self._connections.get(family_code, ()))
        return sum(len(c) for c in self._connections.values())

    async def broadcast_json(self, family_code: str, data: dict[str, Any]) -> None:
        """Send a JSON payload to every client watching *family_code*."""
        async with self._lock:
            clients = set(self._connections.get(family_code, ()))
        if not clients:
            return

        message = json.dumps(data, default=str, ensure_ascii=False)
        dead: set[WebSocket] = set()
        for ws in clients:
            try:
                await ws.send_text(message)
            except Exception:
                dead.add(ws)

        if dead:
            async with self._lock:
                remaining = self._connections.get(family_code)
                if remaining is not None:
                    remaining -= dead
                    if not remaining:
                        del self._connections[family_code]
            logger.info("Removed %d dead UI client(s)", len(dead))
