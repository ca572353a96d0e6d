"""
Tenths encoding for a week of hours.

Each day (Saturday..Friday) is stored as one unsigned byte holding tenths of an
hour, so a whole row fits in the low 56 bits of one integer column. Values are
clamped to [0, 24] hours and rounded to 0.1h; nothing outside that domain is
reported, it is silently clamped.
"""
import math
from typing import List, Sequence

from timetrack.entities import DAYS_IN_WEEK

MAX_DAY_HOURS = 24.0
BYTE_MASK = 0xFF


def to_tenths(hours: float) -> int:
    """Clamp to [0, 24] and round half-up to whole tenths."""
    if hours is None or math.isnan(hours):
        return 0
    hours = min(max(float(hours), 0.0), MAX_DAY_HOURS)
    tenths = int(math.floor(hours * 10 + 0.5))
    return min(max(tenths, 0), BYTE_MASK)


def pack(hours: Sequence[float]) -> int:
    if len(hours) != DAYS_IN_WEEK:
        raise ValueError(f"Expected {DAYS_IN_WEEK} daily values, got {len(hours)}")
    packed = 0
    for day, value in enumerate(hours):
        packed |= (to_tenths(value) & BYTE_MASK) << (day * 8)
    return packed


def unpack(packed: int) -> List[float]:
    return [((packed >> (day * 8)) & BYTE_MASK) / 10 for day in range(DAYS_IN_WEEK)]
