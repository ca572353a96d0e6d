"""
Checks applied to an edited hours grid before it is accepted into a timesheet.

The grid arrives as it was typed: seven cells per row that may be blank, text
or numbers. Parsing never fails (bad cells count as zero); caps, duplicate
project/work-package rows and over-long fields do, and reject the whole edit.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple, Union

from timetrack.entities import (
    DAY_NAMES,
    DAYS_IN_WEEK,
    NOTES_MAX_LENGTH,
    WORK_PACKAGE_MAX_LENGTH,
    Timesheet,
    TimesheetRow,
)
from timetrack.errors import ValidationError
from timetrack.services.period_resolver import is_editable, week_ending_friday

logger = logging.getLogger(__name__)

MAX_DAY_HOURS = 24.0
MAX_WEEK_HOURS = 168.0
TOLERANCE = 1e-6

Cell = Union[str, float, int, None]


@dataclass
class RowEdit:
    project_id: int = 0
    work_package_id: Optional[str] = ""
    hours: Sequence[Cell] = field(default_factory=lambda: [""] * DAYS_IN_WEEK)
    notes: Optional[str] = None

    @property
    def work_package_key(self) -> str:
        return (self.work_package_id or "").strip().upper()

    @property
    def is_placeholder(self) -> bool:
        return self.project_id == 0 and not self.work_package_key


@dataclass
class Violation:
    code: str  # day_cap | week_cap | duplicate_row | too_long
    message: str
    day: Optional[str] = None
    total: Optional[float] = None
    rows: Tuple[int, ...] = ()


def parse_hour(cell: Cell) -> float:
    """Blank or unparsable -> 0.0; otherwise clamped to [0, 24] and rounded to 0.1h."""
    if cell is None:
        return 0.0
    if isinstance(cell, str):
        cell = cell.strip()
        if not cell:
            return 0.0
    try:
        value = float(cell)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or value < 0:
        value = 0.0
    if value > MAX_DAY_HOURS:
        value = MAX_DAY_HOURS
    return math.floor(value * 10 + 0.5) / 10


def parse_week(cells: Optional[Sequence[Cell]]) -> List[float]:
    cells = list(cells or [])
    return [parse_hour(cells[d] if d < len(cells) else None) for d in range(DAYS_IN_WEEK)]


def check_totals(rows: Sequence[RowEdit]) -> List[Violation]:
    day_totals = [0.0] * DAYS_IN_WEEK
    for row in rows:
        for day, value in enumerate(parse_week(row.hours)):
            day_totals[day] += value

    violations = []
    for day, total in enumerate(day_totals):
        if total > MAX_DAY_HOURS + TOLERANCE:
            violations.append(Violation(
                code="day_cap",
                message=f"Total for {DAY_NAMES[day]} exceeds 24 hours ({total:.1f} h).",
                day=DAY_NAMES[day],
                total=round(total, 1),
            ))

    week_total = sum(day_totals)
    if week_total > MAX_WEEK_HOURS + TOLERANCE:
        violations.append(Violation(
            code="week_cap",
            message=f"Weekly total exceeds 168 hours ({week_total:.1f} h).",
            total=round(week_total, 1),
        ))
    return violations


def check_unique(rows: Sequence[RowEdit]) -> List[Violation]:
    first_seen: Dict[Tuple[int, str], int] = {}
    violations = []
    for position, row in enumerate(rows, start=1):
        # Spare blank rows are allowed to repeat
        if row.is_placeholder:
            continue
        key = (row.project_id, row.work_package_key)
        other = first_seen.setdefault(key, position)
        if other != position:
            wp = (row.work_package_id or "").strip()
            violations.append(Violation(
                code="duplicate_row",
                message=(
                    f'Duplicate Project/WP: project {row.project_id} with WP "{wp}" '
                    f"appears in rows {other} and {position}."
                ),
                rows=(other, position),
            ))
    return violations


def check_lengths(rows: Sequence[RowEdit]) -> List[Violation]:
    violations = []
    for position, row in enumerate(rows, start=1):
        wp = (row.work_package_id or "").strip()
        if len(wp) > WORK_PACKAGE_MAX_LENGTH:
            violations.append(Violation(
                code="too_long",
                message=f"Row {position}: WP is longer than {WORK_PACKAGE_MAX_LENGTH} characters.",
                rows=(position,),
            ))
        if row.notes and len(row.notes) > NOTES_MAX_LENGTH:
            violations.append(Violation(
                code="too_long",
                message=f"Row {position}: notes are longer than {NOTES_MAX_LENGTH} characters.",
                rows=(position,),
            ))
    return violations


def validate(rows: Sequence[RowEdit]) -> None:
    """Raise ValidationError listing every problem found; totals are checked before uniqueness."""
    violations = check_totals(rows)
    if violations:
        logger.info(f"Rejected edit: {len(violations)} hour cap violation(s)")
        raise ValidationError("Hours exceed the allowed totals", [v.message for v in violations])

    violations = check_unique(rows)
    if violations:
        logger.info(f"Rejected edit: {len(violations)} duplicate project/work package row(s)")
        raise ValidationError("Duplicate project/work package rows", [v.message for v in violations])

    violations = check_lengths(rows)
    if violations:
        logger.info(f"Rejected edit: {len(violations)} over-long field(s)")
        raise ValidationError("Row fields are too long", [v.message for v in violations])


def check_end_date(end_date: date, today: date) -> None:
    """A moved sheet must still close on a Friday, in the current week or later."""
    if week_ending_friday(end_date) != end_date:
        raise ValidationError("End date must be a Friday", [f"{end_date.isoformat()} is not a Friday."])
    if not is_editable(end_date, today):
        raise ValidationError(
            "End date is in a past week",
            [f"{end_date.isoformat()} is before this week's Friday."],
        )


def apply(timesheet: Timesheet, rows: Sequence[RowEdit]) -> Timesheet:
    """Validate the grid and replace the timesheet's rows with the parsed values."""
    validate(rows)
    timesheet.rows = [
        TimesheetRow(
            project_id=row.project_id,
            work_package_id=(row.work_package_id or "").strip(),
            hours=parse_week(row.hours),
            notes=row.notes,
        )
        for row in rows
    ]
    return timesheet
