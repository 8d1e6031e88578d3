"""
Timezone helpers for the transport backend.
Report periods arrive as ISO-8601 instants and are bucketed by calendar day in
the display timezone (configurable, default Africa/Abidjan).
"""

from datetime import date, datetime, timezone
import pytz
from flask import current_app, has_app_context
from typing import Optional, Union

DEFAULT_DISPLAY_TIMEZONE = "Africa/Abidjan"


def get_display_timezone() -> str:
    """
    Get the configured display timezone.
    Falls back to the default when called outside an application context.
    """
    if has_app_context():
        return current_app.config.get('DISPLAY_TIMEZONE', DEFAULT_DISPLAY_TIMEZONE)
    return DEFAULT_DISPLAY_TIMEZONE


def convert_utc_to_display(utc_dt: Union[datetime, str]) -> datetime:
    """
    Convert a UTC datetime to the configured display timezone.

    Args:
        utc_dt: UTC datetime object or ISO string

    Returns:
        Datetime object in the display timezone
    """
    if isinstance(utc_dt, str):
        utc_dt = parse_datetime_string(utc_dt)
    elif utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)

    display_tz = pytz.timezone(get_display_timezone())
    return utc_dt.astimezone(display_tz)


def to_display_date(value: Union[datetime, date, str]) -> date:
    """Calendar day of an instant as seen in the display timezone."""
    if isinstance(value, datetime):
        return convert_utc_to_display(value).date()
    if isinstance(value, date):
        return value
    return convert_utc_to_display(value).date()


def utc_now() -> datetime:
    """
    Get current time in UTC.

    Returns:
        Current datetime in UTC
    """
    return datetime.now(timezone.utc)


def parse_datetime_string(dt_string: str) -> Optional[datetime]:
    """
    Parse a datetime string and return a timezone-aware datetime in UTC.
    Naive values are assumed to be in the display timezone.

    Raises:
        ValueError: when the string matches none of the accepted formats
    """
    if not dt_string:
        return None

    try:
        dt = datetime.fromisoformat(dt_string.replace('Z', '+00:00'))
    except ValueError:
        dt = None
        for fmt in ['%Y-%m-%d %H:%M:%S', '%d/%m/%Y %H:%M', '%d/%m/%Y', '%d-%m-%Y']:
            try:
                dt = datetime.strptime(dt_string, fmt)
                break
            except ValueError:
                continue
        if dt is None:
            raise ValueError(f"Unable to parse datetime string: {dt_string}")

    if dt.tzinfo is None:
        display_tz = pytz.timezone(get_display_timezone())
        dt = display_tz.localize(dt)
    return dt.astimezone(timezone.utc)


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")
