from datetime import date, datetime
from zoneinfo import ZoneInfo
from timetrack.config import get_settings


def get_business_zone() -> ZoneInfo:
    """Zone the working week is measured in."""
    return ZoneInfo(get_settings().timezone)

def get_local_now() -> datetime:
    """Get current datetime in the business time zone."""
    return datetime.now(get_business_zone())

def get_local_today() -> date:
    """Calendar day in the business time zone; drives current-week lookups."""
    return get_local_now().date()
