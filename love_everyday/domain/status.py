"""SafetyStatus — the derived, point-in-time safety classification.

A SafetyStatus has no lifecycle of its own.  It is recomputed from the
latest ActivitySnapshot on every document change and every tick, then
discarded.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from love_everyday.domain.enums import SafetyLevel


class SafetyStatus(BaseModel):
    """Immutable safety classification of a parent at a point in time."""

    level: SafetyLevel
    title: str = Field(..., description="Short headline for the level")
    message: str = Field(..., description="Human-readable status line")
    last_activity_at: Optional[datetime] = None
    time_since_last_activity: timedelta = Field(
        default=timedelta(0), description="Clamped to zero on clock skew"
    )
    time_until_next_level: timedelta = Field(
        default=timedelta(0),
        description="Remaining time before escalating to the next level",
    )
    alert_hours: int = Field(..., description="Critical threshold that was applied")
    in_sleep_mode: bool = False
    sleep_suppressed: bool = Field(
        default=False,
        description="Escalation was paused by the sleep window",
    )
    sleep_window: Optional[str] = None
    survival_signal_enabled: bool = True
    manual_alert_active: bool = False
    evaluated_at: datetime

    model_config = {"frozen": True}

    @property
    def is_critical(self) -> bool:
        return self.level == SafetyLevel.CRITICAL

    @property
    def monitoring_disabled(self) -> bool:
        return not self.survival_signal_enabled

    def summary(self) -> dict:
        """JSON-friendly view for UI collaborators and logging."""
        return {
            "level": self.level.value,
            "title": self.title,
            "message": self.message,
            "last_activity_at": (
                self.last_activity_at.isoformat() if self.last_activity_at else None
            ),
            "minutes_since_last_activity": int(
                self.time_since_last_activity.total_seconds() // 60
            ),
            "minutes_until_next_level": int(
                self.time_until_next_level.total_seconds() // 60
            ),
            "alert_hours": self.alert_hours,
            "in_sleep_mode": self.in_sleep_mode,
            "sleep_suppressed": self.sleep_suppressed,
            "sleep_window": self.sleep_window,
            "survival_signal_enabled": self.survival_signal_enabled,
            "manual_alert_active": self.manual_alert_active,
            "evaluated_at": self.evaluated_at.isoformat(),
        }
