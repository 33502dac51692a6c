"""Pydantic model for the monitor updates pushed to UI collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from love_everyday.domain.enums import MonitorState
from love_everyday.domain.status import SafetyStatus
from love_everyday.foundation.clock import utc_now


class MonitorUpdate(BaseModel):
    """Current monitor state plus the latest derived status, if any."""

    family_code: str
    state: MonitorState
    elderly_name: Optional[str] = None
    status: Optional[SafetyStatus] = None
    error: Optional[str] = Field(default=None, description="User-facing failure text")
    emitted_at: datetime = Field(default_factory=utc_now)

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": "safety_status",
            "family_code": self.family_code,
            "state": self.state.value,
            "elderly_name": self.elderly_name,
            "status": self.status.summary() if self.status else None,
            "error": self.error,
            "emitted_at": self.emitted_at.isoformat(),
        }
