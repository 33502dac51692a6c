"""Critical-transition notifiers.

StatusMonitor decides *when* a family became critical; notifiers decide
*what happens next*.  Actual push delivery runs server-side and is not
implemented here.  These notifiers log, record the alert on the family
document, and forward it to connected UI clients.

Compose them with NotifierChain: a failing notifier is logged and skipped
so one broken channel never blocks the others or the monitor.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Protocol, Sequence

from love_everyday.foundation.clock import Clock, utc_now
from love_everyday.models.alert import CriticalTransition
from love_everyday.services.connection_manager import ConnectionManager
from love_everyday.store.family_repository import FamilyRepository

logger = logging.getLogger(__name__)


class CriticalAlertNotifier(Protocol):
    """Receives each critical transition exactly once."""

    async def notify(self, event: CriticalTransition) -> None:
        ...


class LoggingNotifier:
    """Writes critical transitions to the application log."""

    async def notify(self, event: CriticalTransition) -> None:
        logger.warning(
            "CRITICAL: family %s (%s) entered critical status: %s",
            event.family_code,
            event.elderly_name,
            event.message,
        )


class AlertRecordNotifier:
    """Persists an audit record of the alert on the family document."""

    def __init__(self, repository: FamilyRepository) -> None:
        self._repository = repository

    async def notify(self, event: CriticalTransition) -> None:
        await self._repository.record_critical_alert(event.family_code, event.to_record())
        logger.info("Critical alert recorded for family %s", event.family_code)


class BroadcastNotifier:
    """Pushes the alert to every UI client watching the family."""

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    async def notify(self, event: CriticalTransition) -> None:
        await self._manager.broadcast_json(event.family_code, event.to_payload())


class CooldownNotifier:
    """Drops repeat alerts for a family within *cooldown* of the last one.

    Guards against flapping documents (critical → safe → critical within
    minutes) paging the family over and over.
    """

    def __init__(
        self,
        inner: CriticalAlertNotifier,
        cooldown: timedelta,
        clock: Clock = utc_now,
    ) -> None:
        self._inner = inner
        self._cooldown = cooldown
        self._clock = clock
        self._last_sent: dict[str, datetime] = {}

    async def notify(self, event: CriticalTransition) -> None:
        now = self._clock()
        last = self._last_sent.get(event.family_code)
        if last is not None and now - last < self._cooldown:
            logger.info("Critical notification for family %s skipped (cooldown)",
                        event.family_code)
            return
        await self._inner.notify(event)
        self._last_sent[event.family_code] = now


class NotifierChain:
    """Fans an event out to several notifiers, isolating their failures."""

    def __init__(self, notifiers: Sequence[CriticalAlertNotifier]) -> None:
        self._notifiers = list(notifiers)

    async def notify(self, event: CriticalTransition) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.notify(event)
            except Exception as exc:
                logger.error(
                    "Notifier %s failed for family %s: %s",
                    type(notifier).__name__,
                    event.family_code,
                    exc,
                    exc_info=True,
                )
