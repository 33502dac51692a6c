"""Pydantic models for critical-alert events and alert-clear results."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from love_everyday.domain.status import SafetyStatus
from love_everyday.foundation.clock import utc_now


class CriticalTransition(BaseModel):
    """Raised once each time a family's status enters CRITICAL."""

    event_id: UUID = Field(default_factory=uuid4)
    family_code: str
    elderly_name: str
    message: str
    status: SafetyStatus
    detected_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

    def to_record(self) -> dict[str, Any]:
        """Audit record written back to the family document."""
        return {
            "timestamp": self.detected_at.isoformat(),
            "triggeredBy": "StatusMonitor",
            "inactiveHours": int(self.status.time_since_last_activity.total_seconds() // 3600),
            "alertHours": self.status.alert_hours,
            "manual": self.status.manual_alert_active,
        }

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": "critical_alert",
            "event_id": str(self.event_id),
            "family_code": self.family_code,
            "elderly_name": self.elderly_name,
            "message": self.message,
            "detected_at": self.detected_at.isoformat(),
        }


class ClearAlertResult(BaseModel):
    """Outcome of a user's "I checked on them" action."""

    success: bool
    message: str
