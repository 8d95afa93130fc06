"""
Input validation utilities
"""
from typing import List, Optional
from datetime import date

from models.event import CustomEventInput, RECURRING_PATTERNS
from utils.helpers import parse_time


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> bool:
    """Validate that date range is logical"""
    if not start_date or not end_date:
        return False

    return start_date <= end_date


def validate_time(value: Optional[str]) -> bool:
    """Validate a time of day string"""
    if not value:
        return False
    return parse_time(value) is not None


def validate_recurring_pattern(pattern: Optional[str]) -> bool:
    """Validate recurrence pattern"""
    return pattern in RECURRING_PATTERNS


def validate_custom_event(event: CustomEventInput) -> List[str]:
    """
    Validate a custom event before it is sent to the backend
    Returns a list of error messages (empty when valid)
    """
    errors = []

    if not event.title or not event.title.strip():
        errors.append("Title is required")

    if not isinstance(event.date, date):
        errors.append("Date is required")
    elif event.end_date and not validate_date_range(event.date, event.end_date):
        errors.append("End date cannot be before the start date")

    if not event.all_day and event.time and not validate_time(event.time):
        errors.append(f"Invalid time '{event.time}', expected HH:MM")

    if event.is_recurring and not validate_recurring_pattern(event.recurring_pattern):
        errors.append("Recurring events need a daily, weekly, monthly or yearly pattern")

    if event.reminder_minutes is not None and event.reminder_minutes < 0:
        errors.append("Reminder minutes cannot be negative")

    return errors
