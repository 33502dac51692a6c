"""Korean display formatting for durations.

Used for every status message so the wording is consistent across levels.
"""

from __future__ import annotations

from datetime import timedelta

_MINUTES_PER_HOUR = 60
_MINUTES_PER_DAY = 24 * 60


def whole_minutes(duration: timedelta) -> int:
    """Floor a duration to whole minutes, never below zero."""
    return max(0, int(duration.total_seconds() // 60))


def format_duration(duration: timedelta) -> str:
    """Render a duration as "42분", "3시간 15분", "3시간", "2일 5시간" or "2일".

    Below an hour only minutes are shown; below a day hours plus leftover
    minutes; beyond that days plus leftover hours.
    """
    minutes = whole_minutes(duration)

    if minutes < _MINUTES_PER_HOUR:
        return f"{minutes}분"

    if minutes < _MINUTES_PER_DAY:
        hours, leftover = divmod(minutes, _MINUTES_PER_HOUR)
        return f"{hours}시간 {leftover}분" if leftover else f"{hours}시간"

    days, rest = divmod(minutes, _MINUTES_PER_DAY)
    hours = rest // _MINUTES_PER_HOUR
    return f"{days}일 {hours}시간" if hours else f"{days}일"
