from datetime import date, datetime
from typing import Optional, Union

from timetrack.entities import Employee, Timesheet
from timetrack.errors import ForbiddenError, UnauthorizedError
from timetrack.services.period_resolver import is_editable
from timetrack.utils.timezone import get_local_today


def can_access(requester: Optional[Employee], timesheet: Optional[Timesheet]) -> bool:
    """Admins see everything; everyone else only their own sheets."""
    if requester is None or timesheet is None:
        return False
    if requester.is_admin:
        return True
    return timesheet.employee is not None and timesheet.employee.emp_number == requester.emp_number


def require_user(requester: Optional[Employee]) -> Employee:
    if requester is None:
        raise UnauthorizedError("Authentication required")
    return requester


def require_admin(requester: Optional[Employee]) -> Employee:
    require_user(requester)
    if not requester.is_admin:
        raise ForbiddenError("Administrator role required")
    return requester


def require_access(requester: Optional[Employee], timesheet: Timesheet, action: str = "view") -> None:
    require_user(requester)
    if not can_access(requester, timesheet):
        raise ForbiddenError(f"You are not allowed to {action} this timesheet")


def require_editable(timesheet: Timesheet, now: Optional[Union[date, datetime]] = None) -> None:
    if not is_editable(timesheet.end_date, now or get_local_today()):
        raise ForbiddenError("Timesheet is not editable (past week)")
