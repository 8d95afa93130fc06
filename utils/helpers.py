"""
Helper utility functions
"""
from datetime import datetime, date, time
from typing import Optional, Union

from config import settings


def format_currency(amount: float) -> str:
    """Format a number as currency"""
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def parse_date(date_str: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse various date formats to a date object
    Examples: "2024-07-01", "2024-07-01T09:30:00Z", "07/01/2024"
    """
    if not date_str:
        return None

    if isinstance(date_str, datetime):
        return date_str.date()

    if isinstance(date_str, date):
        return date_str

    value = str(date_str).strip()

    # ISO timestamps from the backend ("2024-07-01T00:00:00+00:00")
    if 'T' in value:
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            pass

    formats = [
        settings.DATE_FORMAT,  # 2024-07-01
        "%m/%d/%Y",  # 07/01/2024
        "%Y/%m/%d",  # 2024/07/01
        "%b %d, %Y",  # Jul 01, 2024
        "%B %d, %Y",  # July 01, 2024
    ]

    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    return None


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO timestamp; None when missing or malformed"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        return datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    except ValueError:
        return None


def parse_time(time_str: Union[str, time, None]) -> Optional[time]:
    """
    Parse a time of day
    Examples: "09:30", "09:30:00", "9:30 AM"
    """
    if not time_str:
        return None

    if isinstance(time_str, time):
        return time_str

    for fmt in ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p"):
        try:
            return datetime.strptime(str(time_str).strip(), fmt).time()
        except ValueError:
            continue

    return None


def format_time(value: Union[str, time, None]) -> Optional[str]:
    """Normalize a time of day to HH:MM"""
    parsed = parse_time(value)
    if parsed is None:
        return None
    return parsed.strftime(settings.TIME_FORMAT)


def format_date(value: Optional[date]) -> str:
    """Format a date for display (e.g., 'Jul 01, 2024')"""
    if not value:
        return ""
    return value.strftime(settings.DISPLAY_DATE_FORMAT)


def get_month_name(month_date: date) -> str:
    """Get month name from date (e.g., 'Feb 2026')"""
    if not month_date:
        return ""
    return month_date.strftime("%b %Y")


def days_between(later: date, earlier: date) -> int:
    """Whole days from earlier to later (negative when later is in the past)"""
    return (later - earlier).days


def system_clock() -> datetime:
    """Local wall-clock time, injected wherever 'now' is needed"""
    return datetime.now()


def fixed_clock(moment: Union[datetime, date]):
    """Clock that always returns the same moment"""
    if not isinstance(moment, datetime):
        moment = datetime.combine(moment, time.min)
    return lambda: moment
