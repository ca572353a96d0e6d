from sqlalchemy import BigInteger, Column, Integer, String, Date, DateTime, ForeignKey, Index, UniqueConstraint
from datetime import datetime
from timetrack.database import Base
from timetrack.entities import NOTES_MAX_LENGTH, WORK_PACKAGE_MAX_LENGTH


class TimesheetRecord(Base):
    __tablename__ = "timesheets"
    __table_args__ = (
        UniqueConstraint("employee_id", "end_date", name="uq_ts_emp_week"),
        Index("idx_ts_emp_date", "employee_id", "end_date"),
    )

    id = Column("timesheet_id", Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.employee_id", ondelete="CASCADE"), nullable=False)
    end_date = Column(Date, nullable=False)  # Friday closing the week
    overtime_deci = Column(Integer, nullable=False, default=0)
    flextime_deci = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<TimesheetRecord(id={self.id}, employee_id={self.employee_id}, end_date={self.end_date})>"


class TimesheetRowRecord(Base):
    __tablename__ = "timesheet_rows"
    __table_args__ = (
        Index("idx_tsr_ts", "timesheet_id", "line_no"),
    )

    id = Column("row_id", Integer, primary_key=True, autoincrement=True)
    timesheet_id = Column(Integer, ForeignKey("timesheets.timesheet_id", ondelete="CASCADE"), nullable=False)
    line_no = Column(Integer, nullable=False)  # 1-based position within the sheet
    project_id = Column(Integer, nullable=False, default=0)
    work_package_id = Column(String(WORK_PACKAGE_MAX_LENGTH), nullable=False, default="")
    packed_hours = Column(BigInteger, nullable=False, default=0)  # see services.hour_codec
    notes = Column(String(NOTES_MAX_LENGTH), nullable=True)

    def __repr__(self):
        return f"<TimesheetRowRecord(timesheet={self.timesheet_id}, line={self.line_no}, project={self.project_id}, wp={self.work_package_id})>"
