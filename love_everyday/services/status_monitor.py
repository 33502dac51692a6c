"""StatusMonitor — keeps one family's safety status current.

Bridges the push world (family document changes) and the pull world
(elapsed time advancing with no new data) into repeated calculator runs,
and owns critical-transition detection.

Lifecycle:
    uninitialized → loading   start()
    loading       → ready     first document received
    loading/ready → error     stream failure or unexpected end of stream
    error         → loading   retry() (manual, or automatic after retry_delay)
    any           → stopped   stop()

Design notes:
    - Everything runs on one asyncio event loop.  The current status is
      swapped in a single synchronous step before any await, so readers
      never observe a partial update and a critical edge is detected once
      even if a tick and a push interleave.
    - Ticks and pushes both evaluate "the latest snapshot at the current
      time"; their relative order does not matter.
    - The notifier is awaited inside the monitor's own tasks, so stop()
      cancels any in-flight notification along with them.  Nothing fires
      after stop() returns.
    - clear_critical_alert() only writes upstream.  The next pushed
      document is what changes the local status.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable

from love_everyday.adapters.family_document import FamilyDocumentAdapter
from love_everyday.core.status_calculator import SafetyStatusCalculator
from love_everyday.domain.enums import MonitorState
from love_everyday.domain.snapshot import ActivitySnapshot
from love_everyday.domain.status import SafetyStatus
from love_everyday.foundation.clock import Clock, utc_now
from love_everyday.models.alert import CriticalTransition
from love_everyday.models.update import MonitorUpdate
from love_everyday.services.notifications import CriticalAlertNotifier
from love_everyday.store.family_repository import FamilyRepository

logger = logging.getLogger(__name__)

UpdateListener = Callable[[MonitorUpdate], Awaitable[None]]

STREAM_FAILURE_MESSAGE = (
    "안전 상태를 불러올 수 없습니다. 네트워크를 확인한 후 다시 시도해주세요."
)


class MonitorConfigurationError(ValueError):
    """Raised at start() when the monitor cannot be configured."""


class StatusMonitor:
    """Live safety status for a single family.

    Args:
        repository: Source of family documents and target of alert clears.
        calculator: Pure status calculator.
        adapter: Raw document parser; defaults to FamilyDocumentAdapter().
        notifier: Receives each critical transition exactly once.
        clock: Source of "now"; injectable for tests.
        tick_interval: How often elapsed time is re-evaluated without new data.
        retry_delay: Automatic retry delay after a stream error (None = manual only).
    """

    def __init__(
        self,
        repository: FamilyRepository,
        calculator: SafetyStatusCalculator,
        adapter: FamilyDocumentAdapter | None = None,
        notifier: CriticalAlertNotifier | None = None,
        clock: Clock = utc_now,
        tick_interval: timedelta = timedelta(seconds=60),
        retry_delay: timedelta | None = None,
    ) -> None:
        if tick_interval <= timedelta(0):
            raise ValueError("tick_interval must be positive")

        self._repository = repository
        self._calculator = calculator
        self._adapter = adapter or FamilyDocumentAdapter()
        self._notifier = notifier
        self._clock = clock
        self._tick_interval = tick_interval
        self._retry_delay = retry_delay
        self._listeners: list[UpdateListener] = []

        self._family_code: str | None = None
        self._state = MonitorState.UNINITIALIZED
        self._snapshot: ActivitySnapshot | None = None
        self._status: SafetyStatus | None = None
        self._error: str | None = None

        self._subscription_task: asyncio.Task | None = None
        self._tick_task: asyncio.Task | None = None
        self._retry_task: asyncio.Task | None = None

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def family_code(self) -> str | None:
        return self._family_code

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def status(self) -> SafetyStatus | None:
        return self._status

    @property
    def snapshot(self) -> ActivitySnapshot | None:
        return self._snapshot

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def current_update(self) -> MonitorUpdate:
        return MonitorUpdate(
            family_code=self._family_code or "",
            state=self._state,
            elderly_name=self._snapshot.elderly_name if self._snapshot else None,
            status=self._status,
            error=self._error,
        )

    # ── Listeners ────────────────────────────────────────────────────────

    def add_listener(self, listener: UpdateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: UpdateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Public API ───────────────────────────────────────────────────────

    async def start(self, family_code: str) -> None:
        """Subscribe to *family_code* and start the periodic tick.

        Idempotent while already running for the same code.  A different
        code, or a start after stop(), is a full reset.

        Raises:
            MonitorConfigurationError: If *family_code* is blank.
        """
        code = (family_code or "").strip()
        if not code:
            raise MonitorConfigurationError("a family code is required to start monitoring")

        if code == self._family_code and self.is_running:
            return

        await self._cancel_tasks()
        self._family_code = code
        self._snapshot = None
        self._status = None
        self._error = None
        self._state = MonitorState.LOADING
        logger.info("Starting safety monitoring for family %s", code)

        self._subscription_task = asyncio.create_task(self._consume(code))
        self._tick_task = asyncio.create_task(self._tick_loop())
        await self._emit()

    async def stop(self) -> None:
        """Cancel subscription, tick and pending retry.  Safe to repeat."""
        await self._cancel_tasks()
        if self._state not in (MonitorState.UNINITIALIZED, MonitorState.STOPPED):
            logger.info("Stopped safety monitoring for family %s", self._family_code)
            self._state = MonitorState.STOPPED
        self._snapshot = None
        self._status = None
        self._error = None

    async def retry(self) -> None:
        """Re-subscribe after a stream failure and return to loading."""
        if self._family_code is None or not self.is_running:
            raise MonitorConfigurationError("monitor is not running; call start() first")

        await self._cancel(self._retry_task)
        self._retry_task = None
        await self._cancel(self._subscription_task)

        self._state = MonitorState.LOADING
        self._error = None
        logger.info("Retrying safety monitoring for family %s", self._family_code)
        self._subscription_task = asyncio.create_task(self._consume(self._family_code))
        await self._emit()

    async def refresh(self) -> SafetyStatus | None:
        """Re-evaluate the latest snapshot at the current time.

        Returns None until the first document has arrived or while the
        monitor is not ready.
        """
        if self._snapshot is None or self._state != MonitorState.READY:
            return None
        return await self._evaluate(self._snapshot)

    async def clear_critical_alert(self, family_code: str | None = None) -> bool:
        """Ask the repository to deactivate the manual survival alert.

        Local status is left untouched; it follows the next pushed
        document.  Returns False on any persistence failure.
        """
        code = family_code or self._family_code
        if not code:
            raise MonitorConfigurationError("no family code to clear an alert for")

        try:
            cleared = await self._repository.clear_alert(code)
        except Exception as exc:
            logger.error("Failed to clear survival alert for family %s: %s", code, exc)
            return False

        if cleared:
            logger.info("Survival alert cleared for family %s", code)
        else:
            logger.warning("Survival alert clear rejected for family %s", code)
        return cleared

    # ── Evaluation ───────────────────────────────────────────────────────

    async def _evaluate(self, snapshot: ActivitySnapshot) -> SafetyStatus:
        status = self._calculator.calculate(snapshot, self._clock())
        previous = self._status
        self._status = status
        self._state = MonitorState.READY
        self._error = None

        entered_critical = status.is_critical and (previous is None or not previous.is_critical)
        if previous is not None and previous.is_critical and not status.is_critical:
            logger.info("Family %s recovered from critical to %s",
                        snapshot.family_code, status.level.value)

        await self._emit()
        # A listener may have called stop() during emit
        if entered_critical and self.is_running:
            await self._notify_critical(snapshot, status)
        return status

    async def _notify_critical(self, snapshot: ActivitySnapshot, status: SafetyStatus) -> None:
        logger.warning("Family %s entered critical status", snapshot.family_code)
        if self._notifier is None:
            return

        event = CriticalTransition(
            family_code=snapshot.family_code,
            elderly_name=snapshot.elderly_name,
            message=status.message,
            status=status,
        )
        try:
            await self._notifier.notify(event)
        except Exception as exc:
            logger.error("Critical notification failed for family %s: %s",
                         snapshot.family_code, exc, exc_info=True)

    # ── Background tasks ─────────────────────────────────────────────────

    async def _consume(self, family_code: str) -> None:
        try:
            async for raw in self._repository.subscribe(family_code):
                if asyncio.current_task() is not self._subscription_task:
                    return  # superseded by stop() or retry()
                if not raw:
                    logger.warning("Received empty document for family %s", family_code)
                    continue
                snapshot = self._adapter.adapt(family_code, raw)
                self._snapshot = snapshot
                await self._evaluate(snapshot)
                if asyncio.current_task() is not self._subscription_task:
                    return
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Document stream failed for family %s: %s", family_code, exc)
            await self._fail()
            return

        logger.warning("Document stream for family %s ended unexpectedly", family_code)
        await self._fail()

    async def _tick_loop(self) -> None:
        seconds = self._tick_interval.total_seconds()
        while True:
            await asyncio.sleep(seconds)
            if asyncio.current_task() is not self._tick_task:
                return
            await self.refresh()

    async def _retry_later(self) -> None:
        assert self._retry_delay is not None
        await asyncio.sleep(self._retry_delay.total_seconds())
        self._retry_task = None
        await self.retry()

    async def _fail(self) -> None:
        if asyncio.current_task() is not self._subscription_task:
            return
        self._state = MonitorState.ERROR
        self._error = STREAM_FAILURE_MESSAGE
        await self._emit()
        if self._retry_delay is not None and self._retry_task is None:
            self._retry_task = asyncio.create_task(self._retry_later())

    # ── Internals ────────────────────────────────────────────────────────

    async def _emit(self) -> None:
        if not self._listeners:
            return
        update = self.current_update()
        for listener in list(self._listeners):
            try:
                await listener(update)
            except Exception as exc:
                logger.error("Status listener failed: %s", exc, exc_info=True)

    async def _cancel_tasks(self) -> None:
        tasks = (self._subscription_task, self._tick_task, self._retry_task)
        self._subscription_task = self._tick_task = self._retry_task = None
        for task in tasks:
            await self._cancel(task)

    @staticmethod
    async def _cancel(task: asyncio.Task | None) -> None:
        """Cancel *task* and wait for it, unless it is the caller itself."""
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
