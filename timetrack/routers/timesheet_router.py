from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from timetrack.database import get_db
from timetrack.entities import Employee, Timesheet
from timetrack.errors import NotFoundError
from timetrack.routers.dependencies import get_current_employee
from timetrack.schemas import TimesheetDto, TimesheetUpdate
from timetrack.services import access_policy, validation
from timetrack.services.period_resolver import is_editable
from timetrack.services.timesheet_service import TimesheetService
from timetrack.utils.timezone import get_local_today
from typing import List
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/timesheets", tags=["timesheets"])


def to_dto(sheet: Timesheet) -> TimesheetDto:
    return TimesheetDto.from_timesheet(sheet, is_editable(sheet.end_date, get_local_today()))


def load_or_404(db: Session, timesheet_id: int) -> Timesheet:
    sheet = TimesheetService.load_by_id(db, timesheet_id)
    if sheet is None:
        raise NotFoundError("Timesheet not found")
    return sheet


@router.get("", response_model=List[TimesheetDto])
def list_timesheets(employee: Employee = Depends(get_current_employee), db: Session = Depends(get_db)):
    if employee.is_admin:
        sheets = TimesheetService.list_all(db)
    else:
        sheets = TimesheetService.list_for(db, employee)
    return [to_dto(s) for s in sheets]


@router.get("/current", response_model=TimesheetDto)
def current_timesheet(employee: Employee = Depends(get_current_employee), db: Session = Depends(get_db)):
    sheet = TimesheetService.get_current(db, employee)
    if sheet is None:
        raise NotFoundError("No timesheet for the current week")
    return to_dto(sheet)


@router.get("/{timesheet_id}", response_model=TimesheetDto)
def get_timesheet(
    timesheet_id: int,
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    sheet = load_or_404(db, timesheet_id)
    access_policy.require_access(employee, sheet, "view")
    return to_dto(sheet)


@router.post("", response_model=TimesheetDto, status_code=201)
def create_timesheet(
    request: Request,
    response: Response,
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    sheet = TimesheetService.create_current_week(db, employee)
    response.headers["Location"] = f"{str(request.url).rstrip('/')}/{sheet.id}"
    logger.info(f"📍 {employee.user_name} opened sheet {sheet.id} (week ending {sheet.end_date})")
    return to_dto(sheet)


@router.put("/{timesheet_id}", response_model=TimesheetDto)
def update_timesheet(
    timesheet_id: int,
    body: TimesheetUpdate,
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    sheet = load_or_404(db, timesheet_id)
    access_policy.require_access(employee, sheet, "update")
    access_policy.require_editable(sheet)

    moved = body.end_date is not None and body.end_date != sheet.end_date
    if moved:
        validation.check_end_date(body.end_date, get_local_today())
    validation.apply(sheet, body.row_edits())
    if moved:
        sheet.end_date = body.end_date
    TimesheetService.save(db, sheet, timesheet_id)
    logger.info(f"✅ {employee.user_name} updated sheet {timesheet_id} ({len(sheet.rows)} rows)")
    return to_dto(sheet)
