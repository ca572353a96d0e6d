from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from timetrack.entities import Timesheet

FRIDAY = 4  # date.weekday()

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def week_ending_friday(day: DateLike) -> date:
    """
    Friday of the Monday-Sunday week containing ``day``.

    Saturday and Sunday belong to the week that started the Monday before, so
    they resolve back to the Friday just gone.
    """
    day = _as_date(day)
    return day + timedelta(days=FRIDAY - day.weekday())


def is_editable(end_date: Optional[date], now: DateLike) -> bool:
    """A sheet can be written while its period is not before this week's Friday."""
    if end_date is None:
        return False
    return end_date >= week_ending_friday(now)


def _created_key(ts: Timesheet):
    return (ts.created_at or datetime.min, ts.id or 0)


def resolve_current(employee_id: int, now: DateLike, candidates: Iterable[Timesheet]) -> Optional[Timesheet]:
    """
    Pick the timesheet that stands for "this week" for an employee.

    An exact match on this week's Friday wins (newest created, then highest id,
    if the store somehow holds duplicates). Otherwise the sheet whose end date
    is closest to today, preferring a future or same-day end date on a distance
    tie and then the later end date.
    """
    today = _as_date(now)
    owned = [ts for ts in candidates if ts.employee.emp_number == employee_id]
    if not owned:
        return None

    this_friday = week_ending_friday(today)
    exact = [ts for ts in owned if ts.end_date == this_friday]
    if exact:
        return max(exact, key=_created_key)

    def distance_key(ts: Timesheet):
        in_past = 1 if ts.end_date < today else 0
        return (abs((ts.end_date - today).days), in_past, -ts.end_date.toordinal())

    return min(owned, key=distance_key)
