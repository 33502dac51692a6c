"""ActivitySnapshot — the typed view of one family document.

Snapshots are rebuilt from scratch on every document change.  They hold
facts and settings only; deciding what those facts mean is the job of
SafetyStatusCalculator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from love_everyday.domain.enums import ActivitySource
from love_everyday.foundation.clock import ensure_aware

ALL_WEEKDAYS: frozenset[int] = frozenset(range(1, 8))


class SleepSchedule(BaseModel):
    """A recurring do-not-disturb window in the parent's local time.

    Weekdays follow ISO numbering (1 = Monday, 7 = Sunday).  A window whose
    start is later than its end spans midnight.
    """

    enabled: bool = False
    start_hour: int = Field(22, ge=0, le=23)
    start_minute: int = Field(0, ge=0, le=59)
    end_hour: int = Field(6, ge=0, le=23)
    end_minute: int = Field(0, ge=0, le=59)
    active_weekdays: frozenset[int] = Field(default=ALL_WEEKDAYS)

    model_config = {"frozen": True}

    @field_validator("active_weekdays")
    @classmethod
    def weekdays_must_be_iso(cls, v: frozenset[int]) -> frozenset[int]:
        invalid = sorted(d for d in v if d not in ALL_WEEKDAYS)
        if invalid:
            raise ValueError(f"weekdays must be in 1..7, got {invalid}")
        return v

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute

    @property
    def spans_midnight(self) -> bool:
        return self.start_minutes > self.end_minutes

    @property
    def window_label(self) -> str:
        """Display form, e.g. ``"22:00 - 06:00"``."""
        return (
            f"{self.start_hour:02d}:{self.start_minute:02d} - "
            f"{self.end_hour:02d}:{self.end_minute:02d}"
        )


class ActivitySnapshot(BaseModel):
    """Immutable, validated facts about one monitored parent.

    Built at the boundary by FamilyDocumentAdapter, which substitutes
    defaults for anything missing, so the calculator never null-checks.
    """

    family_code: str
    last_activity_at: Optional[datetime] = Field(
        default=None,
        description="Most recent observed activity (None = no data yet)",
    )
    activity_source: Optional[ActivitySource] = None
    elderly_name: str = "부모님"
    alert_threshold_hours: int = Field(12, ge=1, description="Critical threshold in hours")
    survival_signal_enabled: bool = True
    sleep_schedule: Optional[SleepSchedule] = None
    manual_alert_active: bool = False
    manual_alert_message: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("last_activity_at")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        return ensure_aware(v)
