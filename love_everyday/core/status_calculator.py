"""SafetyStatusCalculator — deterministic safety classification.

Design principles:
    1. Pure function: accepts an ActivitySnapshot and "now", returns a
       SafetyStatus.
    2. No side effects, no state mutation, no I/O, never raises.
    3. Thresholds are explicit and configurable.

Evaluation order (first match wins):
    1. Manual alert override     → CRITICAL (even inside a sleep window)
    2. Survival signal disabled  → SAFE, flagged as monitoring-off
    3. No activity timestamp yet → SAFE, "awaiting first signal"
    4. Inside sleep window and elapsed time would escalate
                                 → SAFE, flagged as sleep-suppressed
    5. elapsed >= critical       → CRITICAL
    6. elapsed >= warning (> 0)  → WARNING
    7. otherwise                 → SAFE

Thresholds:
    critical_minutes = alert_threshold_hours * 60
    warning_minutes  = max(critical_minutes - warning_lead_minutes, 0)

    A warning band only exists when warning_minutes > 0, so a one-hour
    threshold jumps straight from SAFE to CRITICAL.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

from love_everyday.core.sleep_window import is_in_sleep_window
from love_everyday.domain.enums import SafetyLevel
from love_everyday.domain.snapshot import ActivitySnapshot
from love_everyday.domain.status import SafetyStatus
from love_everyday.explain.formatter import format_duration, whole_minutes
from love_everyday.foundation.clock import ensure_aware

DEFAULT_MANUAL_ALERT_MESSAGE = "장시간 활동이 감지되지 않습니다"


@dataclass(frozen=True)
class ThresholdConfig:
    """Configurable escalation thresholds."""

    # How long before the critical threshold the warning band opens
    warning_lead_minutes: int = 60


class SafetyStatusCalculator:
    """Maps (snapshot, now) to a SafetyStatus.

    The calculator is stateless.  *local_timezone* is the parent's wall
    clock, used only to decide whether "now" falls inside a sleep window.
    """

    def __init__(
        self,
        thresholds: ThresholdConfig | None = None,
        local_timezone: tzinfo = timezone.utc,
    ) -> None:
        self._thresholds = thresholds or ThresholdConfig()
        self._local_timezone = local_timezone

    # ── Public API ───────────────────────────────────────────────────────

    def calculate(self, snapshot: ActivitySnapshot, now: datetime) -> SafetyStatus:
        """Produce the safety status of *snapshot* as of *now*."""
        now = ensure_aware(now)
        schedule = snapshot.sleep_schedule
        in_sleep = is_in_sleep_window(schedule, now.astimezone(self._local_timezone))
        elapsed = self._elapsed(snapshot.last_activity_at, now)

        base = {
            "last_activity_at": snapshot.last_activity_at,
            "time_since_last_activity": elapsed,
            "alert_hours": snapshot.alert_threshold_hours,
            "in_sleep_mode": in_sleep,
            "sleep_window": schedule.window_label if schedule else None,
            "survival_signal_enabled": snapshot.survival_signal_enabled,
            "manual_alert_active": snapshot.manual_alert_active,
            "evaluated_at": now,
        }

        if snapshot.manual_alert_active:
            return SafetyStatus(
                level=SafetyLevel.CRITICAL,
                title="긴급 상황이 의심됩니다",
                message=snapshot.manual_alert_message or DEFAULT_MANUAL_ALERT_MESSAGE,
                **base,
            )

        if not snapshot.survival_signal_enabled:
            return SafetyStatus(
                level=SafetyLevel.SAFE,
                title="안전 확인 알림이 비활성화됨",
                message="부모님이 안전 확인 알림을 끄셨습니다",
                **base,
            )

        if snapshot.last_activity_at is None:
            return SafetyStatus(
                level=SafetyLevel.SAFE,
                title="활동 정보를 확인 중입니다",
                message="부모님의 첫 활동 신호를 기다리고 있습니다",
                **base,
            )

        critical_minutes, warning_minutes = self.thresholds_for(snapshot)
        elapsed_minutes = whole_minutes(elapsed)
        escalating = elapsed_minutes >= critical_minutes or (
            warning_minutes > 0 and elapsed_minutes >= warning_minutes
        )

        if in_sleep and escalating:
            return SafetyStatus(
                level=SafetyLevel.SAFE,
                title="주무시는 시간입니다",
                message=(
                    f"수면 시간({schedule.window_label})에는 알림이 일시 중지됩니다. "
                    f"마지막 활동: {format_duration(elapsed)} 전"
                ),
                sleep_suppressed=True,
                **base,
            )

        if elapsed_minutes >= critical_minutes:
            return SafetyStatus(
                level=SafetyLevel.CRITICAL,
                title="긴급 상황이 의심됩니다",
                message=(
                    f"{format_duration(elapsed)}째 활동이 없습니다. "
                    "즉시 부모님의 안전을 확인해주세요."
                ),
                **base,
            )

        if warning_minutes > 0 and elapsed_minutes >= warning_minutes:
            remaining = timedelta(minutes=critical_minutes - elapsed_minutes)
            return SafetyStatus(
                level=SafetyLevel.WARNING,
                title="주의가 필요합니다",
                message=(
                    f"{format_duration(remaining)} 후에 알림이 전송됩니다. "
                    "부모님께 안부를 확인해보세요."
                ),
                **{**base, "time_until_next_level": remaining},
            )

        next_boundary = warning_minutes if warning_minutes > 0 else critical_minutes
        return SafetyStatus(
            level=SafetyLevel.SAFE,
            title="안전하게 지내고 계십니다",
            message=f"{format_duration(elapsed)} 전에 활동하셨습니다.",
            **{
                **base,
                "time_until_next_level": timedelta(minutes=next_boundary - elapsed_minutes),
            },
        )

    def thresholds_for(self, snapshot: ActivitySnapshot) -> tuple[int, int]:
        """Return (critical_minutes, warning_minutes) for *snapshot*."""
        critical = snapshot.alert_threshold_hours * 60
        warning = max(critical - self._thresholds.warning_lead_minutes, 0)
        return critical, warning

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _elapsed(last_activity_at: datetime | None, now: datetime) -> timedelta:
        if last_activity_at is None:
            return timedelta(0)
        return max(now - last_activity_at, timedelta(0))
