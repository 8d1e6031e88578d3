"""
Tests for timezone utility functions
"""
import pytest
from datetime import date, datetime, timezone
from transport_backend.utils.timezone_utils import (
    get_display_timezone,
    convert_utc_to_display,
    to_display_date,
    utc_now,
    parse_datetime_string,
    month_key,
)

class TestTimezoneUtils:

    def test_get_display_timezone(self):
        """Outside an app context the default timezone is used"""
        assert get_display_timezone() == "Africa/Abidjan"

    def test_get_display_timezone_from_config(self, app):
        app.config['DISPLAY_TIMEZONE'] = "Asia/Singapore"
        assert get_display_timezone() == "Asia/Singapore"

    def test_convert_utc_to_display(self):
        """Abidjan is UTC+0 all year"""
        utc_dt = datetime(2023, 5, 15, 10, 30, 0, tzinfo=timezone.utc)
        display_dt = convert_utc_to_display(utc_dt)
        assert display_dt.hour == 10
        assert display_dt.tzinfo.zone == "Africa/Abidjan"

    def test_to_display_date_crosses_midnight(self, app):
        app.config['DISPLAY_TIMEZONE'] = "Asia/Singapore"
        assert to_display_date("2024-03-31T20:00:00Z") == date(2024, 4, 1)

    def test_to_display_date_passes_dates_through(self):
        assert to_display_date(date(2024, 3, 1)) == date(2024, 3, 1)

    def test_utc_now(self):
        """Test utc_now returns timezone-aware UTC datetime"""
        now = utc_now()
        assert now.tzinfo == timezone.utc
        assert isinstance(now, datetime)

    def test_parse_datetime_string_iso(self):
        dt = parse_datetime_string("2023-05-15T10:30:00Z")
        assert dt.hour == 10
        assert dt.tzinfo == timezone.utc

    def test_parse_datetime_string_naive(self, app):
        """Naive strings are read in the display timezone"""
        app.config['DISPLAY_TIMEZONE'] = "Asia/Singapore"
        dt = parse_datetime_string("15/05/2023 18:30")
        assert dt.hour == 10
        assert dt.minute == 30

    def test_parse_datetime_string_invalid(self):
        with pytest.raises(ValueError):
            parse_datetime_string("next tuesday")

    def test_parse_datetime_string_empty(self):
        assert parse_datetime_string("") is None

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"
