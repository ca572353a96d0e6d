"""
JSON shapes of the HTTP API.

Field names are camelCase on the wire; dates are ISO-8601 strings and hours
are seven numbers, Saturday through Friday.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timetrack.entities import DAYS_IN_WEEK, Employee, Role, Timesheet, TimesheetRow
from timetrack.services.validation import Cell, RowEdit


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ErrorDto(ApiModel):
    message: str
    violations: List[str] = Field(default_factory=list)


class MessageDto(ApiModel):
    message: str


class LoginRequest(ApiModel):
    user_name: Optional[str] = Field(default=None, alias="userName")
    password: Optional[str] = None


class UserDto(ApiModel):
    user_name: str = Field(alias="userName")
    name: str
    emp_number: int = Field(alias="empNumber")
    admin: bool

    @classmethod
    def from_employee(cls, employee: Employee) -> "UserDto":
        return cls(
            user_name=employee.user_name,
            name=employee.name,
            emp_number=employee.emp_number,
            admin=employee.is_admin,
        )


class LoginResponse(UserDto):
    token: str


class ChangePasswordRequest(ApiModel):
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")


class EmployeeCreate(ApiModel):
    name: str
    user_name: str = Field(alias="userName")
    emp_number: int = Field(default=0, alias="empNumber")  # 0 = next free number
    admin: bool = False
    password: Optional[str] = None

    def to_employee(self) -> Employee:
        return Employee(
            emp_number=self.emp_number,
            user_name=self.user_name,
            name=self.name,
            role=Role.ADMIN if self.admin else Role.USER,
        )


class EmployeeUpdate(ApiModel):
    name: Optional[str] = None
    admin: Optional[bool] = None

    def role(self) -> Optional[Role]:
        if self.admin is None:
            return None
        return Role.ADMIN if self.admin else Role.USER


class TimesheetRowDto(ApiModel):
    project_id: int = Field(default=0, alias="projectId")
    work_package_id: Optional[str] = Field(default="", alias="workPackageId")
    # Cells may be typed text; unparsable ones count as zero when applied
    hours: Optional[List[Cell]] = Field(default=None, validate_default=True)
    notes: Optional[str] = None

    @field_validator("hours", mode="after")
    @classmethod
    def week_or_blank(cls, value):
        # A missing or mis-sized week is treated as an empty one
        if value is None or len(value) != DAYS_IN_WEEK:
            return [0.0] * DAYS_IN_WEEK
        return value

    @classmethod
    def from_row(cls, row: TimesheetRow) -> "TimesheetRowDto":
        return cls(
            project_id=row.project_id,
            work_package_id=row.work_package_id,
            hours=list(row.hours),
            notes=row.notes,
        )

    def to_edit(self) -> RowEdit:
        return RowEdit(
            project_id=self.project_id,
            work_package_id=self.work_package_id or "",
            hours=list(self.hours or []),
            notes=self.notes,
        )


class TimesheetDto(ApiModel):
    id: Optional[int] = None
    emp_number: int = Field(default=-1, alias="empNumber")
    employee_name: str = Field(default="", alias="employeeName")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    editable: bool = False
    week_number: int = Field(default=0, alias="weekNumber")
    total_hours: float = Field(default=0.0, alias="totalHours")
    rows: List[TimesheetRowDto] = Field(default_factory=list)

    @classmethod
    def from_timesheet(cls, sheet: Timesheet, editable: bool) -> "TimesheetDto":
        return cls(
            id=sheet.id,
            emp_number=sheet.employee.emp_number,
            employee_name=sheet.employee.name,
            end_date=sheet.end_date,
            editable=editable,
            week_number=sheet.week_number(),
            total_hours=sheet.total_hours(),
            rows=[TimesheetRowDto.from_row(r) for r in sheet.rows],
        )


class TimesheetUpdate(ApiModel):
    """Body of a timesheet update; the owner is never changed from here."""
    end_date: Optional[date] = Field(default=None, alias="endDate")
    rows: List[TimesheetRowDto] = Field(default_factory=list)

    def row_edits(self) -> List[RowEdit]:
        return [r.to_edit() for r in self.rows]
