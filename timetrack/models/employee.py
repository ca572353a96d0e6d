from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from datetime import datetime
from timetrack.database import Base
from timetrack.entities import Role


class EmployeeRecord(Base):
    __tablename__ = "employees"

    id = Column("employee_id", Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    emp_number = Column(Integer, nullable=False, unique=True)
    user_name = Column(String(80), nullable=False, unique=True)
    role = Column(Enum(Role, name="employee_role"), nullable=False, default=Role.USER)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<EmployeeRecord(emp_number={self.emp_number}, user={self.user_name}, role={self.role})>"


class CredentialRecord(Base):
    __tablename__ = "credentials"

    employee_id = Column(Integer, ForeignKey("employees.employee_id", ondelete="CASCADE"), primary_key=True)
    # Stored as entered; hashing is out of scope for this service
    password_hash = Column(String(255), nullable=False)
    last_changed = Column(DateTime, nullable=False, default=datetime.utcnow)
