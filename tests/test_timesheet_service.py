from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from timetrack.entities import Employee, Timesheet, TimesheetRow
from timetrack.errors import ConflictError, NotFoundError, StorageError
from timetrack.models.timesheet import TimesheetRowRecord
from timetrack.services.timesheet_service import TimesheetService


def make_sheet(owner, end, n_rows=0):
    sheet = Timesheet(employee=owner, end_date=end)
    for i in range(n_rows):
        sheet.rows.append(TimesheetRow(project_id=i + 1, work_package_id=f"WP{i + 1}", hours=[1, 2, 3, 4, 5, 6, 7]))
    return sheet


def stored_row_count(db, timesheet_id):
    return db.query(TimesheetRowRecord).filter(TimesheetRowRecord.timesheet_id == timesheet_id).count()


def test_save_new_assigns_identity_and_persists_rows(db, alice):
    sheet = make_sheet(alice, date(2024, 1, 12), n_rows=2)
    assert sheet.id is None
    TimesheetService.save(db, sheet)
    assert sheet.id is not None
    assert sheet.created_at is not None

    loaded = TimesheetService.load_by_id(db, sheet.id)
    assert loaded.employee.user_name == "alice"
    assert loaded.end_date == date(2024, 1, 12)
    assert [r.work_package_id for r in loaded.rows] == ["WP1", "WP2"]
    assert loaded.rows[0].hours == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]


def test_resave_replaces_all_rows(db, alice):
    sheet = make_sheet(alice, date(2024, 1, 12), n_rows=3)
    TimesheetService.save(db, sheet)
    assert stored_row_count(db, sheet.id) == 3

    sheet.rows = [TimesheetRow(project_id=42, work_package_id="ONLY", notes="kept")]
    TimesheetService.save(db, sheet)

    assert stored_row_count(db, sheet.id) == 1
    loaded = TimesheetService.load_by_id(db, sheet.id)
    assert [(r.project_id, r.work_package_id, r.notes) for r in loaded.rows] == [(42, "ONLY", "kept")]


def test_rows_are_renumbered_in_memory_order(db, alice):
    sheet = make_sheet(alice, date(2024, 1, 12), n_rows=3)
    TimesheetService.save(db, sheet)
    sheet.rows.reverse()
    TimesheetService.save(db, sheet)

    line_nos = [
        (r.line_no, r.project_id)
        for r in db.query(TimesheetRowRecord).filter(
            TimesheetRowRecord.timesheet_id == sheet.id
        ).order_by(TimesheetRowRecord.line_no)
    ]
    assert line_nos == [(1, 3), (2, 2), (3, 1)]


def test_save_with_known_id_updates_existing(db, alice):
    original = make_sheet(alice, date(2024, 1, 12), n_rows=2)
    TimesheetService.save(db, original)

    copy = make_sheet(alice, date(2024, 1, 12), n_rows=1)
    TimesheetService.save(db, copy, original.id)

    assert copy.id == original.id
    assert len(TimesheetService.list_for(db, alice)) == 1
    assert stored_row_count(db, original.id) == 1


def test_save_with_unknown_id_is_not_found(db, alice):
    with pytest.raises(NotFoundError):
        TimesheetService.save(db, make_sheet(alice, date(2024, 1, 12)), 999)


def test_save_for_unknown_employee_is_not_found(db):
    ghost = Employee(emp_number=77, user_name="ghost", name="Ghost")
    with pytest.raises(NotFoundError):
        TimesheetService.save(db, make_sheet(ghost, date(2024, 1, 12)))


def test_second_sheet_for_same_week_conflicts(db, alice):
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 12)))
    duplicate = make_sheet(alice, date(2024, 1, 12))
    with pytest.raises(ConflictError):
        TimesheetService.save(db, duplicate)
    assert duplicate.id is None
    assert len(TimesheetService.list_for(db, alice)) == 1


def test_failed_save_rolls_back_header_and_rows(db, alice, monkeypatch):
    sheet = make_sheet(alice, date(2024, 1, 12), n_rows=3)
    TimesheetService.save(db, sheet)

    def broken(timesheet_id, rows):
        raise OperationalError("INSERT INTO timesheet_rows", {}, Exception("disk I/O error"))

    monkeypatch.setattr(TimesheetService, "_row_records", staticmethod(broken))
    sheet.end_date = date(2024, 1, 19)
    sheet.rows = sheet.rows[:1]
    with pytest.raises(StorageError) as err:
        TimesheetService.save(db, sheet)
    assert err.value.operation == "save"

    monkeypatch.undo()
    loaded = TimesheetService.load_by_id(db, sheet.id)
    assert loaded.end_date == date(2024, 1, 12)
    assert len(loaded.rows) == 3


def test_create_current_week_seeds_placeholders(db, alice):
    sheet = TimesheetService.create_current_week(db, alice, now=date(2024, 1, 10))
    assert sheet.end_date == date(2024, 1, 12)
    assert len(sheet.rows) == 5
    assert all(r.is_placeholder for r in sheet.rows)
    assert stored_row_count(db, sheet.id) == 5


def test_create_current_week_is_idempotent(db, alice):
    first = TimesheetService.create_current_week(db, alice, now=date(2024, 1, 10))
    again = TimesheetService.create_current_week(db, alice, now=date(2024, 1, 11))
    assert again.id == first.id
    assert len(again.rows) == 5
    assert len(TimesheetService.list_for(db, alice)) == 1


def test_get_current_exact_match(db, alice):
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 5)))
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 12), n_rows=2))
    current = TimesheetService.get_current(db, alice, now=date(2024, 1, 10))
    assert current.end_date == date(2024, 1, 12)
    assert len(current.rows) == 2


def test_get_current_falls_back_to_future_on_tie(db, alice):
    TimesheetService.save(db, make_sheet(alice, date(2023, 12, 1)))
    TimesheetService.save(db, make_sheet(alice, date(2024, 2, 1)))
    current = TimesheetService.get_current(db, alice, now=date(2024, 1, 1))
    assert current.end_date == date(2024, 2, 1)


def test_get_current_without_sheets(db, alice):
    assert TimesheetService.get_current(db, alice, now=date(2024, 1, 10)) is None
    assert TimesheetService.get_current(db, None) is None


def test_list_all_orders_by_owner_then_newest(db, alice, bob):
    TimesheetService.save(db, make_sheet(bob, date(2024, 1, 5)))
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 5)))
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 12), n_rows=1))

    listed = [(s.employee.user_name, s.end_date) for s in TimesheetService.list_all(db)]
    assert listed == [
        ("alice", date(2024, 1, 12)),
        ("alice", date(2024, 1, 5)),
        ("bob", date(2024, 1, 5)),
    ]
    assert len(TimesheetService.list_all(db)[0].rows) == 1


def test_list_for_only_returns_own_sheets(db, alice, bob):
    TimesheetService.save(db, make_sheet(bob, date(2024, 1, 5)))
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 5)))
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 19)))
    assert [s.end_date for s in TimesheetService.list_for(db, alice)] == [date(2024, 1, 19), date(2024, 1, 5)]
    assert TimesheetService.list_for(db, None) == []


def test_get_newest_is_last_created(db, alice):
    TimesheetService.save(db, make_sheet(alice, date(2024, 1, 19)))
    latest = TimesheetService.save(db, make_sheet(alice, date(2024, 1, 5)))
    assert TimesheetService.get_newest(db, alice).id == latest.id


def test_load_by_id_miss_is_none(db):
    assert TimesheetService.load_by_id(db, 12345) is None
    assert TimesheetService.load_by_id(db, None) is None


def test_overtime_and_flextime_are_stored_verbatim(db, alice):
    sheet = make_sheet(alice, date(2024, 1, 12))
    sheet.overtime, sheet.flextime = 15, 5
    TimesheetService.save(db, sheet)
    loaded = TimesheetService.load_by_id(db, sheet.id)
    assert (loaded.overtime, loaded.flextime) == (15, 5)
