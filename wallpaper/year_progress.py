"""Calendar progress for the current year in server local time."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .models import CalendarFacts

_ONE_DAY = timedelta(days=1)


def compute_calendar_facts(now: Optional[datetime] = None) -> CalendarFacts:
    """Compute day-of-year statistics for ``now``.

    Arithmetic is done on local wall-clock time, so a daylight saving
    transition does not shift the day count. An aware ``now`` is first
    converted to the server's local zone.
    """
    if now is None:
        now = datetime.now()
    elif now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)

    year = now.year
    start_of_year = datetime(year, 1, 1)
    end_of_year = datetime(year, 12, 31)

    day_of_year = (now - start_of_year) // _ONE_DAY + 1
    total_days = (end_of_year - start_of_year) // _ONE_DAY + 1

    return CalendarFacts(
        year=year,
        day_of_year=day_of_year,
        total_days=total_days,
        remaining_days=total_days - day_of_year,
        progress_fraction=day_of_year / total_days,
    )
