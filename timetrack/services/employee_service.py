from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from timetrack.models.employee import EmployeeRecord, CredentialRecord
from timetrack.models.timesheet import TimesheetRecord, TimesheetRowRecord
from timetrack.entities import Employee, Role
from timetrack.errors import ConflictError, ForbiddenError, NotFoundError, StorageError
from timetrack.config import get_settings
from datetime import datetime
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


def to_employee(record: EmployeeRecord) -> Employee:
    return Employee(
        emp_number=record.emp_number,
        user_name=record.user_name,
        name=record.name,
        role=Role(record.role),
    )


class EmployeeService:
    """Employee directory and credential store."""

    @staticmethod
    def _record_by_user_name(db: Session, user_name: Optional[str]) -> Optional[EmployeeRecord]:
        if not user_name:
            return None
        return db.query(EmployeeRecord).filter(
            func.lower(EmployeeRecord.user_name) == user_name.strip().lower()
        ).first()

    @staticmethod
    def _record_by_emp_number(db: Session, emp_number: int) -> Optional[EmployeeRecord]:
        return db.query(EmployeeRecord).filter(EmployeeRecord.emp_number == emp_number).first()

    @staticmethod
    def find_by_user_name(db: Session, user_name: Optional[str]) -> Optional[Employee]:
        record = EmployeeService._record_by_user_name(db, user_name)
        return to_employee(record) if record else None

    @staticmethod
    def find_by_emp_number(db: Session, emp_number: int) -> Optional[Employee]:
        record = EmployeeService._record_by_emp_number(db, emp_number)
        return to_employee(record) if record else None

    @staticmethod
    def list_all(db: Session) -> List[Employee]:
        records = db.query(EmployeeRecord).order_by(EmployeeRecord.emp_number).all()
        return [to_employee(r) for r in records]

    @staticmethod
    def next_employee_number(db: Session) -> int:
        current = db.query(func.max(EmployeeRecord.emp_number)).scalar()
        return (current or 0) + 1

    @staticmethod
    def insert(db: Session, employee: Employee, password: Optional[str] = None) -> Employee:
        """
        Add an employee together with a credentials row.

        An emp_number of 0 means "assign the next free number". The employee
        object is updated in place with the number actually stored.
        """
        if EmployeeService._record_by_user_name(db, employee.user_name):
            raise ConflictError(f"Username already exists: {employee.user_name}")
        if employee.emp_number != 0 and EmployeeService._record_by_emp_number(db, employee.emp_number):
            raise ConflictError(f"Employee number already exists: {employee.emp_number}")

        emp_number = employee.emp_number or EmployeeService.next_employee_number(db)
        record = EmployeeRecord(
            name=employee.name,
            emp_number=emp_number,
            user_name=employee.user_name.strip(),
            role=employee.role,
        )
        try:
            db.add(record)
            db.flush()
            db.add(CredentialRecord(
                employee_id=record.id,
                password_hash=password or get_settings().default_password,
            ))
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"❌ Employee insert conflicted for {employee.user_name}: {str(e)}")
            raise ConflictError(f"Employee already exists: {employee.user_name}") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Error inserting employee {employee.user_name}: {str(e)}")
            raise StorageError("insert_employee") from e

        employee.emp_number = emp_number
        logger.info(f"✅ Added {employee.role.value} {employee.user_name} as #{emp_number}")
        return employee

    @staticmethod
    def update_profile(
        db: Session,
        emp_number: int,
        name: Optional[str] = None,
        role: Optional[Role] = None
    ) -> Employee:
        record = EmployeeService._record_by_emp_number(db, emp_number)
        if not record:
            raise NotFoundError(f"Employee #{emp_number} not found")
        try:
            if name is not None:
                record.name = name
            if role is not None:
                record.role = role
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Error updating employee #{emp_number}: {str(e)}")
            raise StorageError("update_employee") from e
        return to_employee(record)

    @staticmethod
    def delete(db: Session, emp_number: int) -> None:
        """Remove an employee with their credentials and timesheets. The seeded admin stays."""
        settings = get_settings()
        record = EmployeeService._record_by_emp_number(db, emp_number)
        if not record:
            raise NotFoundError(f"Employee #{emp_number} not found")
        if record.user_name.lower() == settings.admin_user_name.lower():
            raise ForbiddenError("Cannot delete the seeded admin.")

        try:
            sheet_ids = [
                sid for (sid,) in db.query(TimesheetRecord.id).filter(TimesheetRecord.employee_id == record.id)
            ]
            if sheet_ids:
                db.query(TimesheetRowRecord).filter(
                    TimesheetRowRecord.timesheet_id.in_(sheet_ids)
                ).delete(synchronize_session=False)
                db.query(TimesheetRecord).filter(
                    TimesheetRecord.id.in_(sheet_ids)
                ).delete(synchronize_session=False)
            db.query(CredentialRecord).filter(CredentialRecord.employee_id == record.id).delete()
            db.delete(record)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Error deleting employee #{emp_number}: {str(e)}")
            raise StorageError("delete_employee") from e
        logger.info(f"🗑️ Deleted employee #{emp_number} and {len(sheet_ids)} timesheet(s)")

    @staticmethod
    def verify_credentials(db: Session, user_name: Optional[str], password: Optional[str]) -> bool:
        if not user_name or password is None:
            return False
        stored = db.query(CredentialRecord.password_hash).join(
            EmployeeRecord, EmployeeRecord.id == CredentialRecord.employee_id
        ).filter(
            func.lower(EmployeeRecord.user_name) == user_name.strip().lower()
        ).scalar()
        return stored is not None and stored == password

    @staticmethod
    def set_password(db: Session, user_name: str, new_password: str) -> None:
        record = EmployeeService._record_by_user_name(db, user_name)
        if not record:
            raise NotFoundError(f"Unknown user: {user_name}")
        try:
            credential = db.get(CredentialRecord, record.id)
            if credential is None:
                credential = CredentialRecord(employee_id=record.id, password_hash=new_password)
                db.add(credential)
            else:
                credential.password_hash = new_password
                credential.last_changed = datetime.utcnow()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Error changing password for {user_name}: {str(e)}")
            raise StorageError("set_password") from e
        logger.info(f"🔑 Password changed for {record.user_name}")

    @staticmethod
    def reset_password(db: Session, user_name: str) -> None:
        EmployeeService.set_password(db, user_name, get_settings().default_password)

    @staticmethod
    def ensure_admin_exists(db: Session) -> Optional[Employee]:
        """Seed the bootstrap administrator when the directory is empty."""
        if db.query(EmployeeRecord).first() is not None:
            return None
        settings = get_settings()
        admin = Employee(emp_number=0, user_name=settings.admin_user_name, name="System Admin", role=Role.ADMIN)
        record = EmployeeRecord(name=admin.name, emp_number=0, user_name=admin.user_name, role=Role.ADMIN)
        try:
            db.add(record)
            db.flush()
            db.add(CredentialRecord(employee_id=record.id, password_hash=settings.admin_password))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Error seeding admin: {str(e)}")
            raise StorageError("ensure_admin_exists") from e
        logger.info(f"Seeded administrator account '{admin.user_name}'")
        return admin
