from datetime import date

import pytest

from timetrack.entities import Employee, Role, Timesheet
from timetrack.errors import ConflictError, ForbiddenError, NotFoundError
from timetrack.services.employee_service import EmployeeService
from timetrack.services.timesheet_service import TimesheetService


def test_admin_is_seeded_once(db, admin):
    assert admin.emp_number == 0
    assert admin.is_admin
    assert EmployeeService.ensure_admin_exists(db) is None
    assert EmployeeService.verify_credentials(db, "admin", "admin123")


def test_lookup_by_user_name_ignores_case(db, alice):
    assert EmployeeService.find_by_user_name(db, "ALICE").emp_number == 1
    assert EmployeeService.find_by_user_name(db, "nobody") is None
    assert EmployeeService.find_by_emp_number(db, 1).name == "Alice Doe"


def test_insert_assigns_next_number_and_default_password(db, alice, bob):
    carol = EmployeeService.insert(db, Employee(emp_number=0, user_name="carol", name="Carol"))
    assert carol.emp_number == 3
    assert EmployeeService.next_employee_number(db) == 4
    assert EmployeeService.verify_credentials(db, "carol", "password")
    assert [e.user_name for e in EmployeeService.list_all(db)] == ["admin", "alice", "bob", "carol"]


def test_duplicate_user_name_or_number_conflicts(db, alice):
    with pytest.raises(ConflictError):
        EmployeeService.insert(db, Employee(emp_number=0, user_name="Alice", name="Other Alice"))
    with pytest.raises(ConflictError):
        EmployeeService.insert(db, Employee(emp_number=1, user_name="alice2", name="Alice Two"))


def test_update_profile_changes_name_and_role(db, alice):
    updated = EmployeeService.update_profile(db, 1, name="Alice Smith", role=Role.ADMIN)
    assert updated.name == "Alice Smith"
    assert updated.is_admin
    with pytest.raises(NotFoundError):
        EmployeeService.update_profile(db, 99, name="x")


def test_passwords(db, alice):
    assert EmployeeService.verify_credentials(db, " alice ", "alicepw")
    assert not EmployeeService.verify_credentials(db, "alice", "wrong")
    assert not EmployeeService.verify_credentials(db, None, "alicepw")

    EmployeeService.set_password(db, "alice", "newsecret")
    assert EmployeeService.verify_credentials(db, "alice", "newsecret")

    EmployeeService.reset_password(db, "alice")
    assert EmployeeService.verify_credentials(db, "alice", "password")

    with pytest.raises(NotFoundError):
        EmployeeService.set_password(db, "nobody", "x")


def test_delete_removes_employee_and_sheets(db, alice):
    TimesheetService.save(db, Timesheet(employee=alice, end_date=date(2024, 1, 12)))
    EmployeeService.delete(db, 1)
    assert EmployeeService.find_by_emp_number(db, 1) is None
    assert TimesheetService.list_all(db) == []
    assert not EmployeeService.verify_credentials(db, "alice", "alicepw")


def test_seeded_admin_cannot_be_deleted(db, admin):
    with pytest.raises(ForbiddenError):
        EmployeeService.delete(db, admin.emp_number)
    with pytest.raises(NotFoundError):
        EmployeeService.delete(db, 99)
