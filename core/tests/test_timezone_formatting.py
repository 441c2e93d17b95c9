"""Tests for timezone formatting utilities."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


class TestFormatDatetimeInTimezone:
    def test_formats_in_user_timezone_with_offset(self):
        """Meeting at Wed 15:00 UTC should show as Wed 10:00 PM (UTC+7) in Bangkok."""
        from core.timezone import format_datetime_in_timezone

        utc_dt = datetime(2024, 1, 10, 15, 0, tzinfo=ZoneInfo("UTC"))  # Wed 15:00 UTC
        result = format_datetime_in_timezone(utc_dt, "Asia/Bangkok")

        assert result == "Wednesday at 10:00 PM (UTC+7)"

    def test_formats_date_correctly_when_day_changes(self):
        """Meeting at Wed 01:00 UTC should show as Tue in PST (day changes)."""
        from core.timezone import format_datetime_in_timezone

        utc_dt = datetime(2024, 1, 10, 1, 0, tzinfo=ZoneInfo("UTC"))
        result = format_datetime_in_timezone(utc_dt, "America/Los_Angeles")

        assert "Tuesday" in result
        assert "(UTC-8)" in result

    def test_falls_back_to_utc_for_invalid_timezone(self):
        from core.timezone import format_datetime_in_timezone

        utc_dt = datetime(2024, 1, 10, 15, 0, tzinfo=ZoneInfo("UTC"))
        result = format_datetime_in_timezone(utc_dt, "Invalid/Timezone")

        assert result == "Wednesday at 3:00 PM (UTC)"

    def test_missing_timezone_is_utc(self):
        from core.timezone import format_datetime_in_timezone

        utc_dt = datetime(2024, 1, 10, 15, 0, tzinfo=ZoneInfo("UTC"))
        assert format_datetime_in_timezone(utc_dt, None) == "Wednesday at 3:00 PM (UTC)"

    def test_formats_naive_datetime_as_utc(self):
        """Naive datetime should be treated as UTC."""
        from core.timezone import format_datetime_in_timezone

        naive_dt = datetime(2024, 1, 10, 15, 0)
        result = format_datetime_in_timezone(naive_dt, "Asia/Tokyo")

        assert "Thursday" in result  # +9 hours from Wed 15:00 = Thu 00:00
        assert "(UTC+9)" in result

    def test_half_hour_offset(self):
        from core.timezone import format_datetime_in_timezone

        utc_dt = datetime(2024, 1, 10, 15, 0, tzinfo=ZoneInfo("UTC"))
        result = format_datetime_in_timezone(utc_dt, "Asia/Kolkata")

        assert result == "Wednesday at 8:30 PM (UTC+5:30)"


class TestFormatDateInTimezone:
    def test_formats_date_only(self):
        from core.timezone import format_date_in_timezone

        utc_dt = datetime(2024, 1, 10, 15, 0, tzinfo=ZoneInfo("UTC"))
        result = format_date_in_timezone(utc_dt, "America/New_York")

        assert result == "Wednesday, January 10"

    def test_date_changes_with_timezone(self):
        """Date should change when timezone crosses midnight."""
        from core.timezone import format_date_in_timezone

        # Wed Jan 10 at 01:00 UTC = Tue Jan 9 in LA
        utc_dt = datetime(2024, 1, 10, 1, 0, tzinfo=ZoneInfo("UTC"))
        result = format_date_in_timezone(utc_dt, "America/Los_Angeles")

        assert result == "Tuesday, January 9"


class TestFormatMeetingDatetime:
    def test_same_instant_differs_per_recipient(self):
        from core.timezone import format_meeting_datetime

        utc_dt = datetime(2024, 1, 10, 15, 0, tzinfo=timezone.utc)

        assert format_meeting_datetime(utc_dt, "Asia/Bangkok") == (
            "Wednesday, January 10 at 10:00 PM (UTC+7)"
        )
        assert format_meeting_datetime(utc_dt, "America/New_York") == (
            "Wednesday, January 10 at 10:00 AM (UTC-5)"
        )

    def test_daylight_saving_offset(self):
        from core.timezone import format_meeting_datetime

        utc_dt = datetime(2024, 7, 10, 15, 0, tzinfo=timezone.utc)
        assert format_meeting_datetime(utc_dt, "America/New_York").endswith("11:00 AM (UTC-4)")


class TestParseDatetime:
    def test_accepts_trailing_z(self):
        from core.timezone import parse_datetime

        result = parse_datetime("2026-01-10T14:45:00.000Z")
        assert result == datetime(2026, 1, 10, 14, 45, tzinfo=timezone.utc)

    def test_converts_offsets_to_utc(self):
        from core.timezone import parse_datetime

        result = parse_datetime("2026-01-10T21:45:00+07:00")
        assert result == datetime(2026, 1, 10, 14, 45, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_naive_is_utc(self):
        from core.timezone import parse_datetime

        result = parse_datetime(datetime(2026, 1, 10, 14, 45))
        assert result.utcoffset() == timedelta(0)

    def test_bad_input(self):
        from core.timezone import parse_datetime

        assert parse_datetime(None) is None
        assert parse_datetime("") is None
        assert parse_datetime("tomorrow") is None


class TestTimezoneValidation:
    def test_is_valid_timezone(self):
        from core.timezone import is_valid_timezone

        assert is_valid_timezone("Africa/Nairobi") is True
        assert is_valid_timezone("Mars/Olympus") is False
        assert is_valid_timezone(None) is False
