"""
In-memory domain objects.

These are what the services hand to callers; the SQLAlchemy tables under
timetrack.models are only the storage shape.
"""
import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

DAYS_IN_WEEK = 7
# Column widths of a stored row
WORK_PACKAGE_MAX_LENGTH = 64
NOTES_MAX_LENGTH = 512
DAY_NAMES = ("Sat", "Sun", "Mon", "Tue", "Wed", "Thu", "Fri")


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass
class Employee:
    emp_number: int
    user_name: str
    name: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def blank_week() -> List[float]:
    return [0.0] * DAYS_IN_WEEK


@dataclass
class TimesheetRow:
    project_id: int = 0
    work_package_id: str = ""
    hours: List[float] = field(default_factory=blank_week)
    notes: Optional[str] = None

    def __post_init__(self):
        if self.hours is None or len(self.hours) != DAYS_IN_WEEK:
            self.hours = blank_week()
        else:
            self.hours = [float(h) for h in self.hours]
        if self.work_package_id is None:
            self.work_package_id = ""

    @property
    def is_placeholder(self) -> bool:
        return self.project_id == 0 and not self.work_package_id.strip()

    @property
    def total(self) -> float:
        return round(sum(self.hours), 1)


@dataclass
class Timesheet:
    employee: Employee
    end_date: date
    rows: List[TimesheetRow] = field(default_factory=list)
    # Tenths of an hour; stored but never derived from rows
    overtime: int = 0
    flextime: int = 0
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def add_row(self) -> TimesheetRow:
        row = TimesheetRow()
        self.rows.append(row)
        return row

    def day_totals(self) -> List[float]:
        totals = blank_week()
        for row in self.rows:
            for day, value in enumerate(row.hours):
                totals[day] += value
        return [round(t, 1) for t in totals]

    def total_hours(self) -> float:
        return round(sum(self.day_totals()), 1)

    def week_number(self) -> int:
        return self.end_date.isocalendar()[1]
