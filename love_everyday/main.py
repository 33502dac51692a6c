"""love-everyday — live safety status for elderly parents.

This is the application entry point.  It wires the family repository,
SafetyStatusCalculator, notifiers, MonitorRegistry, and the HTTP and
WebSocket endpoints together.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator
from zoneinfo import ZoneInfo

from fastapi import FastAPI

from love_everyday.adapters.family_document import FamilyDocumentAdapter
from love_everyday.api.documents import create_document_router
from love_everyday.api.status import create_status_router
from love_everyday.api.ws_status import create_status_stream_router
from love_everyday.config import settings
from love_everyday.core.status_calculator import SafetyStatusCalculator, ThresholdConfig
from love_everyday.foundation.redaction import RedactingFilter
from love_everyday.models.update import MonitorUpdate
from love_everyday.services.connection_manager import ConnectionManager
from love_everyday.services.monitor_registry import MonitorRegistry
from love_everyday.services.notifications import (
    AlertRecordNotifier,
    BroadcastNotifier,
    CooldownNotifier,
    CriticalAlertNotifier,
    LoggingNotifier,
    NotifierChain,
)
from love_everyday.services.status_monitor import StatusMonitor
from love_everyday.store.family_repository import InMemoryFamilyRepository

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(RedactingFilter())

# ── Status Engine ────────────────────────────────────────────────────────────

calculator = SafetyStatusCalculator(
    thresholds=ThresholdConfig(warning_lead_minutes=settings.warning_lead_minutes),
    local_timezone=ZoneInfo(settings.timezone),
)

adapter = FamilyDocumentAdapter(
    default_alert_hours=settings.default_alert_hours,
    min_alert_hours=settings.min_alert_hours,
    max_alert_hours=settings.max_alert_hours,
    default_elderly_name=settings.default_elderly_name,
)

# ── State ────────────────────────────────────────────────────────────────────

repository = InMemoryFamilyRepository()
ui_manager = ConnectionManager()

# ── Notifications ────────────────────────────────────────────────────────────

notifier: CriticalAlertNotifier = NotifierChain([
    LoggingNotifier(),
    AlertRecordNotifier(repository),
    BroadcastNotifier(ui_manager),
])
if settings.critical_notification_cooldown_minutes > 0:
    notifier = CooldownNotifier(
        notifier,
        cooldown=timedelta(minutes=settings.critical_notification_cooldown_minutes),
    )

# ── Monitors ─────────────────────────────────────────────────────────────────


async def _broadcast_update(update: MonitorUpdate) -> None:
    await ui_manager.broadcast_json(update.family_code, update.to_payload())


def _build_monitor() -> StatusMonitor:
    monitor = StatusMonitor(
        repository,
        calculator,
        adapter=adapter,
        notifier=notifier,
        tick_interval=timedelta(seconds=settings.status_tick_seconds),
        retry_delay=(
            timedelta(seconds=settings.stream_retry_seconds)
            if settings.stream_retry_seconds > 0 else None
        ),
    )
    monitor.add_listener(_broadcast_update)
    return monitor


registry = MonitorRegistry(_build_monitor)

# ── App ──────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await registry.stop_all()


app = FastAPI(
    title=settings.app_name,
    description="Safety status derivation and live monitoring",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_document_router(repository))
app.include_router(create_status_router(registry))
app.include_router(create_status_stream_router(registry, ui_manager))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "families": await repository.family_count(),
        "ui_clients": ui_manager.active_count(),
        **registry.summary(),
    }
