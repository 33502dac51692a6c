"""Sleep window evaluation.

A sleep window pauses inactivity escalation while the parent is expected
to be asleep.  The check is a pure clock observation on the wall-clock
fields of *now*; callers convert *now* into the parent's timezone first.
"""

from __future__ import annotations

from datetime import datetime

from love_everyday.domain.snapshot import SleepSchedule


def is_in_sleep_window(schedule: SleepSchedule | None, now: datetime) -> bool:
    """True if *now* falls inside an enabled, active-today sleep window.

    Both window edges are inclusive.  When the start is later than the end
    (e.g. 22:00 - 06:00) the window wraps around midnight.  The weekday is
    taken from *now* itself, so the early-morning half of an overnight
    window counts against the following day's weekday.
    """
    if schedule is None or not schedule.enabled:
        return False

    if now.isoweekday() not in schedule.active_weekdays:
        return False

    current = now.hour * 60 + now.minute
    start = schedule.start_minutes
    end = schedule.end_minutes

    if schedule.spans_midnight:
        return current >= start or current <= end
    return start <= current <= end
