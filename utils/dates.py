import datetime as dt
import re
from typing import Optional

_DATE_KEY = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def today() -> dt.date:
    return dt.date.today()


def date_key(day: Optional[dt.date] = None) -> str:
    return (day or today()).isoformat()


def parse_date_key(key: str) -> Optional[dt.date]:
    # YYYY-MM-DD only; fromisoformat also takes "20261019" and "2026-W43-1"
    if not _DATE_KEY.fullmatch(str(key)):
        return None
    try:
        return dt.date.fromisoformat(str(key))
    except ValueError:
        return None


def to_date_string(day: dt.date) -> str:
    """Locale-independent "Mon Oct 19 2026" form (strftime %a/%b follow the locale)."""
    return f"{_WEEKDAYS[day.weekday()]} {_MONTHS[day.month - 1]} {day.day:02d} {day.year:04d}"
