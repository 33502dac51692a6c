"""FamilyDocumentAdapter — translates raw family documents into snapshots.

Expected raw format (every key optional):
{
    "elderlyName": "김순자",
    "lastPhoneActivity": "2026-02-13T14:00:00Z",
    "lastActive": 1760000000000,
    "lastMeal": {"timestamp": {"seconds": 1760000000, "nanoseconds": 0}},
    "location": {"timestamp": "..."},
    "survivalAlert": {"isActive": true, "message": "..."},
    "settings": {
        "alertHours": 12,
        "survivalSignalEnabled": true,
        "sleepTimeSettings": {
            "enabled": true,
            "sleepStartHour": 22, "sleepStartMinute": 0,
            "sleepEndHour": 6, "sleepEndMinute": 0,
            "activeDays": [1, 2, 3, 4, 5, 6, 7]
        }
    }
}

Architectural rules:
    1. The input dict must NOT be mutated.
    2. adapt() never raises on bad field values.  Anything missing or
       malformed degrades to a documented default and is logged, because
       a monitoring system must keep producing a status.
    3. A malformed sleep schedule is dropped entirely so it can never
       suppress alerting.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from love_everyday.domain.enums import ActivitySource
from love_everyday.domain.snapshot import ALL_WEEKDAYS, ActivitySnapshot, SleepSchedule
from love_everyday.foundation.clock import ensure_aware

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# (source, path) in priority order; phone activity reflects real usage,
# GPS updates can happen on their own so location comes last.
_ACTIVITY_FIELDS: tuple[tuple[ActivitySource, tuple[str, ...]], ...] = (
    (ActivitySource.PHONE, ("lastPhoneActivity",)),
    (ActivitySource.PHONE, ("blastPhoneActivity",)),
    (ActivitySource.APP, ("lastActive",)),
    (ActivitySource.MEAL, ("lastMeal", "timestamp")),
    (ActivitySource.MEAL, ("lastMealTime",)),
    (ActivitySource.LOCATION, ("location", "timestamp")),
)


def parse_timestamp(value: Any) -> datetime | None:
    """Convert the timestamp shapes the backend emits into an aware datetime.

    Accepts datetimes, ISO-8601 strings, epoch milliseconds and
    Firestore-style ``{"seconds": ..., "nanoseconds": ...}`` maps.
    Returns None for anything else, including numbers that cannot be
    represented as a datetime.
    """
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError):
            # NaN, infinity or beyond datetime's range
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_aware(datetime.fromisoformat(text))
        except ValueError:
            return None
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = nanos if isinstance(nanos, (int, float)) else 0
            try:
                return _EPOCH + timedelta(seconds=seconds, microseconds=nanos / 1000)
            except (OverflowError, ValueError):
                return None
    return None


def _dig(raw: dict[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = raw
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class FamilyDocumentAdapter:
    """Maps raw family documents to ActivitySnapshots."""

    def __init__(
        self,
        default_alert_hours: int = 12,
        min_alert_hours: int = 1,
        max_alert_hours: int = 72,
        default_elderly_name: str = "부모님",
    ) -> None:
        if not min_alert_hours <= default_alert_hours <= max_alert_hours:
            raise ValueError("default_alert_hours must lie within the allowed range")

        self._default_alert_hours = default_alert_hours
        self._min_alert_hours = min_alert_hours
        self._max_alert_hours = max_alert_hours
        self._default_elderly_name = default_elderly_name

    # ── Public API ───────────────────────────────────────────────────────

    def adapt(self, family_code: str, raw: dict[str, Any]) -> ActivitySnapshot:
        """Translate *raw* into a validated ActivitySnapshot."""
        settings = raw.get("settings")
        if not isinstance(settings, dict):
            settings = {}

        last_activity_at, source = self.last_activity(raw)
        alert = raw.get("survivalAlert")
        alert = alert if isinstance(alert, dict) else {}

        message = alert.get("message")
        name = raw.get("elderlyName")
        enabled = settings.get("survivalSignalEnabled", True)

        return ActivitySnapshot(
            family_code=family_code,
            last_activity_at=last_activity_at,
            activity_source=source,
            elderly_name=name.strip() if isinstance(name, str) and name.strip()
            else self._default_elderly_name,
            alert_threshold_hours=self.alert_hours(settings),
            survival_signal_enabled=enabled if isinstance(enabled, bool) else True,
            sleep_schedule=self.sleep_schedule(settings),
            manual_alert_active=alert.get("isActive") is True,
            manual_alert_message=message.strip()
            if isinstance(message, str) and message.strip() else None,
        )

    def has_valid_activity(self, raw: dict[str, Any]) -> bool:
        """True if any activity field carries a parseable timestamp."""
        return self.last_activity(raw)[0] is not None

    def has_valid_alert_hours(self, raw: dict[str, Any]) -> bool:
        """True if the document configures an in-range alert threshold."""
        settings = raw.get("settings")
        if not isinstance(settings, dict):
            return False
        return self._configured_alert_hours(settings) is not None

    # ── Field parsing ────────────────────────────────────────────────────

    def last_activity(
        self, raw: dict[str, Any]
    ) -> tuple[datetime | None, ActivitySource | None]:
        """Most trustworthy activity timestamp and where it came from."""
        for source, path in _ACTIVITY_FIELDS:
            value = _dig(raw, path)
            if value is None:
                continue
            parsed = parse_timestamp(value)
            if parsed is not None:
                return parsed, source
            logger.warning("Unparseable activity timestamp in %s", ".".join(path))
        return None, None

    def alert_hours(self, settings: dict[str, Any]) -> int:
        hours = self._configured_alert_hours(settings)
        if hours is None:
            if "alertHours" in settings or "survivalAlertHours" in settings:
                logger.warning(
                    "Invalid alert threshold %r, using default of %d hours",
                    settings.get("alertHours", settings.get("survivalAlertHours")),
                    self._default_alert_hours,
                )
            return self._default_alert_hours
        return hours

    def sleep_schedule(self, settings: dict[str, Any]) -> SleepSchedule | None:
        raw = settings.get("sleepTimeSettings")
        if not isinstance(raw, dict):
            return None

        days = raw.get("activeDays")
        if isinstance(days, (list, tuple, set, frozenset)):
            weekdays = frozenset(d for d in days if _is_int(d) and d in ALL_WEEKDAYS)
        else:
            weekdays = ALL_WEEKDAYS

        def field(key: str, default: int) -> Any:
            value = raw.get(key)
            return default if value is None else value

        try:
            return SleepSchedule(
                enabled=raw.get("enabled") is True,
                start_hour=field("sleepStartHour", 22),
                start_minute=field("sleepStartMinute", 0),
                end_hour=field("sleepEndHour", 6),
                end_minute=field("sleepEndMinute", 0),
                active_weekdays=weekdays,
            )
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed sleep schedule (%d error(s)); alerts stay active",
                exc.error_count(),
            )
            return None

    # ── Internals ────────────────────────────────────────────────────────

    def _configured_alert_hours(self, settings: dict[str, Any]) -> int | None:
        for key in ("alertHours", "survivalAlertHours"):
            value = settings.get(key)
            if value is None:
                continue
            if _is_int(value) and self._min_alert_hours <= value <= self._max_alert_hours:
                return value
            return None
        return None
