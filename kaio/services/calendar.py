"""Day-of-week arithmetic shared by the scheduler and plan installation.

Two weekday conventions meet here: plan days are indexed Monday = 0 (as
``date.weekday()`` does), while the regeneration setting stores Sunday = 0.
"""

import re
from datetime import date, datetime, timedelta
from typing import Tuple

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> Tuple[int, int]:
    """Parse a 24h ``HH:MM`` string into (hour, minute)."""
    match = _HHMM.match(value.strip())
    if not match:
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    return int(match.group(1)), int(match.group(2))


def day_index(day: date) -> int:
    """Index of ``day`` in the plan week (Monday = 0 .. Sunday = 6)."""
    return day.weekday()


def sunday_based_weekday(day: date) -> int:
    """Weekday of ``day`` with Sunday = 0 .. Saturday = 6."""
    return day.isoweekday() % 7


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day_index(day))


def last_scheduled_occurrence(now: datetime, weekday: int, hhmm: str) -> datetime:
    """Anchor ``now`` to the most recent ``weekday`` (Sunday = 0) at ``hhmm``.

    The date steps back 0-6 days, so when ``now`` falls on ``weekday`` the
    result is today's slot even if that time has not been reached yet.
    """
    hour, minute = parse_hhmm(hhmm)
    scheduled = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    days_back = (sunday_based_weekday(now.date()) - weekday) % 7
    return scheduled - timedelta(days=days_back)
