from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from timetrack.database import get_db
from timetrack.entities import Employee
from timetrack.errors import NotFoundError
from timetrack.routers.dependencies import get_current_admin, get_token_store
from timetrack.schemas import EmployeeCreate, EmployeeUpdate, MessageDto, UserDto
from timetrack.services.employee_service import EmployeeService
from timetrack.services.token_store import TokenStore
from typing import List
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/employees", tags=["employees"])


@router.get("", response_model=List[UserDto])
def list_employees(admin: Employee = Depends(get_current_admin), db: Session = Depends(get_db)):
    return [UserDto.from_employee(e) for e in EmployeeService.list_all(db)]


@router.post("", response_model=UserDto, status_code=201)
def add_employee(body: EmployeeCreate, admin: Employee = Depends(get_current_admin), db: Session = Depends(get_db)):
    employee = EmployeeService.insert(db, body.to_employee(), body.password)
    logger.info(f"{admin.user_name} added {employee.user_name}")
    return UserDto.from_employee(employee)


@router.put("/{emp_number}", response_model=UserDto)
def update_employee(
    emp_number: int,
    body: EmployeeUpdate,
    admin: Employee = Depends(get_current_admin),
    db: Session = Depends(get_db),
    store: TokenStore = Depends(get_token_store)
):
    role = body.role()
    employee = EmployeeService.update_profile(db, emp_number, name=body.name, role=role)
    if role is not None:
        # Sessions carry the role they logged in with
        store.revoke_all(emp_number)
    logger.info(f"{admin.user_name} updated employee #{emp_number}")
    return UserDto.from_employee(employee)


@router.delete("/{emp_number}", response_model=MessageDto)
def delete_employee(
    emp_number: int,
    admin: Employee = Depends(get_current_admin),
    db: Session = Depends(get_db),
    store: TokenStore = Depends(get_token_store)
):
    EmployeeService.delete(db, emp_number)
    store.revoke_all(emp_number)
    logger.info(f"{admin.user_name} deleted employee #{emp_number}")
    return MessageDto(message=f"Employee #{emp_number} deleted")


@router.post("/{emp_number}/reset-password", response_model=MessageDto)
def reset_password(emp_number: int, admin: Employee = Depends(get_current_admin), db: Session = Depends(get_db)):
    employee = EmployeeService.find_by_emp_number(db, emp_number)
    if employee is None:
        raise NotFoundError(f"Employee #{emp_number} not found")
    EmployeeService.reset_password(db, employee.user_name)
    return MessageDto(message=f"Password reset for {employee.user_name}")
