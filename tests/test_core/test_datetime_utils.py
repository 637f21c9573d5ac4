"""Tests for timezone utilities in datetime_utils."""

from datetime import UTC, date, datetime, time, timedelta

import pytest

from paperbot.core.datetime_utils import (
    WINDOW_MINUTES,
    content_date_key,
    is_in_delivery_window,
    is_valid_timezone,
    minutes_until_preferred_time,
    parse_preferred_time,
    to_aware_utc,
    to_naive_utc,
)

# 2026-01-13 14:00 UTC is 09:00 in New York (EST, UTC-5)
NY_NINE_AM = datetime(2026, 1, 13, 14, 0, tzinfo=UTC)


class TestIsValidTimezone:
    """Tests for is_valid_timezone."""

    def test_valid_iana_timezone(self):
        """Should return True for valid IANA timezone."""
        assert is_valid_timezone("America/New_York") is True
        assert is_valid_timezone("Asia/Kolkata") is True
        assert is_valid_timezone("UTC") is True

    def test_invalid_timezone(self):
        """Should return False for invalid timezone."""
        assert is_valid_timezone("Invalid/Timezone") is False
        assert is_valid_timezone("") is False
        assert is_valid_timezone("America/Atlantis") is False


class TestParsePreferredTime:
    """Tests for parse_preferred_time."""

    def test_full_format(self):
        """Should parse HH:MM:SS."""
        assert parse_preferred_time("09:00:00") == time(9, 0, 0)
        assert parse_preferred_time("23:59:30") == time(23, 59, 30)

    def test_short_format(self):
        """Should accept HH:MM."""
        assert parse_preferred_time("07:45") == time(7, 45)

    @pytest.mark.parametrize(
        "value",
        ["", "nine", "9", "25:00:00", "09:60:00", "09:00:00:00", "-1:00", "99999999999999999999:00", "009:00"],
    )
    def test_malformed_raises(self, value):
        """Should raise ValueError for malformed times."""
        with pytest.raises(ValueError):
            parse_preferred_time(value)


class TestMinutesUntilPreferredTime:
    """Tests for minutes_until_preferred_time."""

    def test_converts_to_user_timezone(self):
        """Should compare against local wall-clock time, not UTC."""
        assert minutes_until_preferred_time("America/New_York", "09:05:00", NY_NINE_AM) == 5
        assert minutes_until_preferred_time("UTC", "14:05:00", NY_NINE_AM) == 5

    def test_negative_after_preferred_time(self):
        """Should be negative once the preferred time has passed."""
        assert minutes_until_preferred_time("America/New_York", "08:57:00", NY_NINE_AM) == -3

    def test_truncates_seconds(self):
        """Seconds are ignored on both sides."""
        now = datetime(2026, 1, 13, 14, 0, 59, tzinfo=UTC)
        assert minutes_until_preferred_time("America/New_York", "09:01:59", now) == 1

    def test_naive_now_is_utc(self):
        """A naive instant is read as UTC."""
        naive = datetime(2026, 1, 13, 14, 0)
        assert minutes_until_preferred_time("America/New_York", "09:00:00", naive) == 0

    def test_unknown_timezone_raises(self):
        """Should raise ValueError for unknown zones."""
        with pytest.raises(ValueError):
            minutes_until_preferred_time("Mars/Olympus_Mons", "09:00:00", NY_NINE_AM)


class TestIsInDeliveryWindow:
    """Tests for is_in_delivery_window."""

    @pytest.mark.parametrize("diff", range(0, WINDOW_MINUTES + 1))
    def test_inside_window(self, diff):
        """Every diff from 0 to the window size is eligible."""
        preferred = (datetime(2026, 1, 13, 9, 0) + timedelta(minutes=diff)).strftime("%H:%M:%S")
        assert is_in_delivery_window("America/New_York", preferred, NY_NINE_AM) is True

    def test_one_minute_past_is_not_eligible(self):
        """diff = -1: preferred time just passed, wait until tomorrow."""
        assert is_in_delivery_window("America/New_York", "08:59:00", NY_NINE_AM) is False

    def test_one_minute_beyond_window_is_not_eligible(self):
        """diff = WINDOW_MINUTES + 1 is too early."""
        assert is_in_delivery_window("America/New_York", "09:06:00", NY_NINE_AM) is False

    def test_custom_window(self):
        """Window size is a parameter."""
        assert is_in_delivery_window("America/New_York", "09:10:00", NY_NINE_AM, window_minutes=10)
        assert not is_in_delivery_window("America/New_York", "09:11:00", NY_NINE_AM, window_minutes=10)

    def test_invalid_timezone_fails_closed(self):
        """Invalid timezone: not eligible, no exception."""
        assert is_in_delivery_window("Not/AZone", "09:00:00", NY_NINE_AM) is False

    @pytest.mark.parametrize(
        "value", ["", "garbage", "24:00:00", None, "99999999999999999999:00", "09:000000000000000000000"]
    )
    def test_malformed_time_fails_closed(self, value):
        """Malformed preferred time: not eligible, no exception."""
        assert is_in_delivery_window("America/New_York", value, NY_NINE_AM) is False

    def test_pure_function(self):
        """Same inputs give the same answer every time."""
        answers = {is_in_delivery_window("Asia/Tokyo", "23:03:00", NY_NINE_AM) for _ in range(20)}
        assert answers == {True}

    def test_window_does_not_wrap_midnight(self):
        """The window is same-day: 23:58 local against a 00:01 preference is not eligible."""
        now = datetime(2026, 1, 13, 23, 58, tzinfo=UTC)
        assert is_in_delivery_window("UTC", "00:01:00", now) is False


class TestContentDateKey:
    """Tests for content_date_key."""

    def test_uses_utc_date(self):
        """Should return the UTC calendar date."""
        assert content_date_key(NY_NINE_AM) == date(2026, 1, 13)

    def test_after_utc_midnight_before_local_midnight(self):
        """Late evening in New York is already tomorrow in UTC."""
        # 2026-01-13 20:30 in New York
        now = datetime(2026, 1, 14, 1, 30, tzinfo=UTC)
        assert content_date_key(now) == date(2026, 1, 14)

    def test_aware_non_utc_input(self):
        """An aware non-UTC instant is converted before taking the date."""
        from zoneinfo import ZoneInfo

        tokyo = datetime(2026, 1, 14, 8, 0, tzinfo=ZoneInfo("Asia/Tokyo"))  # 23:00 UTC on the 13th
        assert content_date_key(tokyo) == date(2026, 1, 13)

    def test_naive_input_is_utc(self):
        """Naive instants are treated as UTC."""
        assert content_date_key(datetime(2026, 1, 13, 23, 59)) == date(2026, 1, 13)


class TestConversions:
    """Tests for naive/aware conversions."""

    def test_round_trip(self):
        """Aware to naive and back keeps the instant."""
        assert to_aware_utc(to_naive_utc(NY_NINE_AM)) == NY_NINE_AM
