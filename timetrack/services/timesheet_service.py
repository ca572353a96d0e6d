from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from timetrack.models.employee import EmployeeRecord
from timetrack.models.timesheet import TimesheetRecord, TimesheetRowRecord
from timetrack.entities import Employee, Timesheet, TimesheetRow
from timetrack.errors import ConflictError, NotFoundError, StorageError
from timetrack.services import hour_codec
from timetrack.services.employee_service import to_employee
from timetrack.services.period_resolver import resolve_current, week_ending_friday
from timetrack.utils.timezone import get_local_today
from timetrack.config import get_settings
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class TimesheetService:
    """
    Loads and stores timesheets with their rows.

    A timesheet's header and its full row set are always written in one
    transaction; rows carry no identity of their own and are replaced
    wholesale on every save.
    """

    # ---------------- Reads ----------------

    @staticmethod
    def list_all(db: Session) -> List[Timesheet]:
        """Every timesheet, grouped by owner, newest period first."""
        try:
            pairs = db.query(TimesheetRecord, EmployeeRecord).join(
                EmployeeRecord, EmployeeRecord.id == TimesheetRecord.employee_id
            ).order_by(EmployeeRecord.emp_number, desc(TimesheetRecord.end_date)).all()
            sheets = [TimesheetService._to_timesheet(r, to_employee(e)) for r, e in pairs]
            TimesheetService._attach_rows(db, sheets)
        except SQLAlchemyError as e:
            logger.error(f"❌ list_all failed: {str(e)}")
            raise StorageError("list_all") from e
        return sheets

    @staticmethod
    def list_for(db: Session, employee: Optional[Employee]) -> List[Timesheet]:
        """One employee's timesheets, newest period first."""
        if employee is None:
            return []
        try:
            sheets = TimesheetService._headers_for(db, employee)
            TimesheetService._attach_rows(db, sheets)
        except SQLAlchemyError as e:
            logger.error(f"❌ list_for failed for #{employee.emp_number}: {str(e)}")
            raise StorageError("list_for") from e
        return sheets

    @staticmethod
    def get_current(db: Session, employee: Optional[Employee], now: Optional[DateLike] = None) -> Optional[Timesheet]:
        """The sheet for this week, or the one closest to it."""
        if employee is None:
            return None
        now = now or get_local_today()
        try:
            headers = TimesheetService._headers_for(db, employee)
            current = resolve_current(employee.emp_number, now, headers)
            if current is not None:
                TimesheetService._attach_rows(db, [current])
        except SQLAlchemyError as e:
            logger.error(f"❌ get_current failed for #{employee.emp_number}: {str(e)}")
            raise StorageError("get_current") from e
        return current

    @staticmethod
    def get_newest(db: Session, employee: Optional[Employee]) -> Optional[Timesheet]:
        """The most recently created sheet of an employee."""
        if employee is None:
            return None
        try:
            pair = db.query(TimesheetRecord, EmployeeRecord).join(
                EmployeeRecord, EmployeeRecord.id == TimesheetRecord.employee_id
            ).filter(
                EmployeeRecord.emp_number == employee.emp_number
            ).order_by(desc(TimesheetRecord.created_at), desc(TimesheetRecord.id)).first()
            if pair is None:
                return None
            sheet = TimesheetService._to_timesheet(pair[0], to_employee(pair[1]))
            TimesheetService._attach_rows(db, [sheet])
        except SQLAlchemyError as e:
            logger.error(f"❌ get_newest failed for #{employee.emp_number}: {str(e)}")
            raise StorageError("get_newest") from e
        return sheet

    @staticmethod
    def load_by_id(db: Session, timesheet_id: Optional[int]) -> Optional[Timesheet]:
        if timesheet_id is None:
            return None
        try:
            pair = db.query(TimesheetRecord, EmployeeRecord).join(
                EmployeeRecord, EmployeeRecord.id == TimesheetRecord.employee_id
            ).filter(TimesheetRecord.id == timesheet_id).first()
            if pair is None:
                return None
            sheet = TimesheetService._to_timesheet(pair[0], to_employee(pair[1]))
            TimesheetService._attach_rows(db, [sheet])
        except SQLAlchemyError as e:
            logger.error(f"❌ load_by_id failed for id={timesheet_id}: {str(e)}")
            raise StorageError("load_by_id") from e
        return sheet

    # ---------------- Writes ----------------

    @staticmethod
    def create_current_week(db: Session, employee: Employee, now: Optional[DateLike] = None) -> Timesheet:
        """
        Make sure the employee has a sheet for this week's Friday.

        An existing sheet is returned as is. A new one gets the configured
        number of blank rows. Losing an insert race to another request raises
        ConflictError; re-reading then finds the winner's sheet.
        """
        end_date = week_ending_friday(now or get_local_today())
        existing = TimesheetService._find_header(db, employee, end_date)
        if existing is not None:
            logger.info(f"📍 Sheet for #{employee.emp_number} week ending {end_date} already exists (id={existing.id})")
            TimesheetService._attach_rows(db, [existing])
            return existing

        sheet = Timesheet(employee=employee, end_date=end_date)
        for _ in range(get_settings().placeholder_rows):
            sheet.add_row()
        TimesheetService.save(db, sheet)
        logger.info(f"✅ Created sheet {sheet.id} for #{employee.emp_number} week ending {end_date}")
        return sheet

    @staticmethod
    def save(db: Session, timesheet: Timesheet, known_id: Optional[int] = None) -> Timesheet:
        """
        Persist header and rows atomically.

        Without an id the header is inserted and the id assigned once the
        transaction commits. With one (on the object or as known_id) the header
        is updated and all rows are deleted and reinserted in current order,
        numbered from 1.
        """
        if known_id is not None:
            timesheet.id = known_id
        existing_id = timesheet.id

        logger.info(f"🔄 Saving sheet id={existing_id} for #{timesheet.employee.emp_number}, {len(timesheet.rows)} row(s)")
        try:
            employee_id = TimesheetService._require_employee_id(db, timesheet.employee)
            if existing_id is None:
                if timesheet.end_date is None:
                    timesheet.end_date = week_ending_friday(get_local_today())
                record = TimesheetRecord(
                    employee_id=employee_id,
                    end_date=timesheet.end_date,
                    overtime_deci=timesheet.overtime,
                    flextime_deci=timesheet.flextime,
                )
                db.add(record)
                db.flush()
            else:
                record = db.get(TimesheetRecord, existing_id)
                if record is None:
                    raise NotFoundError(f"Timesheet {existing_id} not found")
                record.end_date = timesheet.end_date
                record.overtime_deci = timesheet.overtime
                record.flextime_deci = timesheet.flextime
                db.query(TimesheetRowRecord).filter(
                    TimesheetRowRecord.timesheet_id == existing_id
                ).delete(synchronize_session=False)

            saved_id, created_at = record.id, record.created_at
            db.add_all(TimesheetService._row_records(saved_id, timesheet.rows))
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"❌ Save of sheet id={existing_id} conflicted: {str(e)}")
            raise ConflictError(
                f"A timesheet for week ending {timesheet.end_date} already exists for this employee"
            ) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Error saving sheet id={existing_id}: {str(e)}")
            raise StorageError("save") from e
        except Exception:
            db.rollback()
            raise

        timesheet.id = saved_id
        timesheet.created_at = created_at
        logger.info(f"✅ Saved sheet {timesheet.id}")
        return timesheet

    # ---------------- Helpers ----------------

    @staticmethod
    def _to_timesheet(record: TimesheetRecord, employee: Employee) -> Timesheet:
        return Timesheet(
            employee=employee,
            end_date=record.end_date,
            overtime=record.overtime_deci,
            flextime=record.flextime_deci,
            id=record.id,
            created_at=record.created_at,
        )

    @staticmethod
    def _headers_for(db: Session, employee: Employee) -> List[Timesheet]:
        record = db.query(EmployeeRecord).filter(EmployeeRecord.emp_number == employee.emp_number).first()
        if record is None:
            return []
        owner = to_employee(record)
        headers = db.query(TimesheetRecord).filter(
            TimesheetRecord.employee_id == record.id
        ).order_by(desc(TimesheetRecord.end_date)).all()
        return [TimesheetService._to_timesheet(h, owner) for h in headers]

    @staticmethod
    def _find_header(db: Session, employee: Employee, end_date: date) -> Optional[Timesheet]:
        pair = db.query(TimesheetRecord, EmployeeRecord).join(
            EmployeeRecord, EmployeeRecord.id == TimesheetRecord.employee_id
        ).filter(
            EmployeeRecord.emp_number == employee.emp_number,
            TimesheetRecord.end_date == end_date,
        ).order_by(desc(TimesheetRecord.created_at), desc(TimesheetRecord.id)).first()
        if pair is None:
            return None
        return TimesheetService._to_timesheet(pair[0], to_employee(pair[1]))

    @staticmethod
    def _attach_rows(db: Session, sheets: Iterable[Timesheet]) -> None:
        """Load rows for all given sheets in one query, in line order."""
        by_id: Dict[int, Timesheet] = {s.id: s for s in sheets if s.id is not None}
        if not by_id:
            return
        records = db.query(TimesheetRowRecord).filter(
            TimesheetRowRecord.timesheet_id.in_(list(by_id))
        ).order_by(TimesheetRowRecord.timesheet_id, TimesheetRowRecord.line_no).all()
        for sheet in by_id.values():
            sheet.rows = []
        for r in records:
            by_id[r.timesheet_id].rows.append(TimesheetRow(
                project_id=r.project_id,
                work_package_id=r.work_package_id or "",
                hours=hour_codec.unpack(r.packed_hours),
                notes=r.notes,
            ))

    @staticmethod
    def _row_records(timesheet_id: int, rows: List[TimesheetRow]) -> List[TimesheetRowRecord]:
        return [
            TimesheetRowRecord(
                timesheet_id=timesheet_id,
                line_no=line_no,
                project_id=row.project_id,
                work_package_id=row.work_package_id or "",
                packed_hours=hour_codec.pack(row.hours),
                notes=row.notes,
            )
            for line_no, row in enumerate(rows, start=1)
        ]

    @staticmethod
    def _require_employee_id(db: Session, employee: Employee) -> int:
        employee_id = db.query(EmployeeRecord.id).filter(
            EmployeeRecord.emp_number == employee.emp_number
        ).scalar()
        if employee_id is None:
            raise NotFoundError(f"Employee #{employee.emp_number} not found")
        return employee_id
