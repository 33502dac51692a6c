"""Monitor Registry — one StatusMonitor per monitored family.

The registry is constructed by the application and passed to whatever
needs a monitor.  There is no module-level singleton.

Ownership:
    - ensure_started() pins a monitor.  It keeps running until stop().
    - attach()/detach() count stream watchers.  A monitor that only
      watchers started is stopped and forgotten when the last one leaves.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from love_everyday.services.status_monitor import MonitorConfigurationError, StatusMonitor

logger = logging.getLogger(__name__)

MonitorFactory = Callable[[], StatusMonitor]


class MonitorRegistry:
    """Creates, starts, looks up and stops per-family monitors.

    Usage:
        registry = MonitorRegistry(lambda: StatusMonitor(repository, calculator))
        monitor = await registry.ensure_started("4821")
    """

    def __init__(self, factory: MonitorFactory) -> None:
        self._factory = factory
        self._monitors: dict[str, StatusMonitor] = {}
        self._pinned: set[str] = set()
        self._watchers: dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def ensure_started(self, family_code: str) -> StatusMonitor:
        """Return the running monitor for *family_code*, starting it if needed.

        The monitor stays registered until stop() is called for it.

        Raises:
            MonitorConfigurationError: If *family_code* is blank.
        """
        code = self._normalize(family_code)
        async with self._lock:
            monitor = await self._start(code)
            self._pinned.add(code)
            return monitor

    async def attach(self, family_code: str) -> StatusMonitor:
        """Start (or reuse) the monitor on behalf of one stream watcher.

        Every successful attach() must be paired with a detach().

        Raises:
            MonitorConfigurationError: If *family_code* is blank.
        """
        code = self._normalize(family_code)
        async with self._lock:
            monitor = await self._start(code)
            self._watchers[code] = self._watchers.get(code, 0) + 1
            return monitor

    async def detach(self, family_code: str) -> bool:
        """Release one watcher.  Returns True if the monitor was stopped."""
        code = family_code.strip()
        async with self._lock:
            remaining = self._watchers.get(code, 0) - 1
            if remaining > 0:
                self._watchers[code] = remaining
                return False
            self._watchers.pop(code, None)
            if code in self._pinned:
                return False
            monitor = self._monitors.pop(code, None)
        if monitor is None:
            return False
        await monitor.stop()
        logger.info("Released unwatched monitor for family %s", code)
        return True

    def get(self, family_code: str) -> StatusMonitor | None:
        return self._monitors.get(family_code)

    async def stop(self, family_code: str) -> bool:
        """Stop and forget the monitor for *family_code*."""
        async with self._lock:
            monitor = self._monitors.pop(family_code, None)
            self._pinned.discard(family_code)
            self._watchers.pop(family_code, None)
        if monitor is None:
            return False
        await monitor.stop()
        return True

    async def stop_all(self) -> None:
        async with self._lock:
            monitors = list(self._monitors.values())
            self._monitors.clear()
            self._pinned.clear()
            self._watchers.clear()
        for monitor in monitors:
            await monitor.stop()
        if monitors:
            logger.info("Stopped %d monitor(s)", len(monitors))

    @property
    def family_codes(self) -> list[str]:
        return sorted(self._monitors)

    def watcher_count(self, family_code: str) -> int:
        return self._watchers.get(family_code, 0)

    def summary(self) -> dict:
        """Per-state monitor counts for observability endpoints."""
        counts: dict[str, int] = {}
        for monitor in self._monitors.values():
            counts[monitor.state.value] = counts.get(monitor.state.value, 0) + 1
        return {
            "monitors": len(self._monitors),
            "pinned": len(self._pinned),
            "watchers": sum(self._watchers.values()),
            "by_state": counts,
        }

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _normalize(family_code: str) -> str:
        code = (family_code or "").strip()
        if not code:
            raise MonitorConfigurationError("a family code is required to start monitoring")
        return code

    async def _start(self, code: str) -> StatusMonitor:
        """Must be called while holding self._lock."""
        monitor = self._monitors.get(code)
        if monitor is None:
            monitor = self._factory()
            self._monitors[code] = monitor
            logger.info("Registered monitor for family %s", code)
        await monitor.start(code)
        return monitor
