"""Tests for duration formatting."""

from stopwatch_app.utils.time_conversions import format_duration, split_milliseconds


class TestFormatDuration:
    """Tests for format_duration."""

    def test_zero(self) -> None:
        assert format_duration(0) == "00:00:00.00"
        assert format_duration(0, include_centiseconds=False) == "00:00:00"

    def test_hours_minutes_seconds_centiseconds(self) -> None:
        assert format_duration(3_661_230) == "01:01:01.23"
        assert format_duration(3_661_230, include_centiseconds=False) == "01:01:01"

    def test_centiseconds_truncate(self) -> None:
        """Sub-centisecond milliseconds are dropped, never rounded up."""
        assert format_duration(999) == "00:00:00.99"
        assert format_duration(1_009) == "00:00:01.00"

    def test_hours_do_not_wrap(self) -> None:
        assert format_duration(100 * 3_600_000) == "100:00:00.00"

    def test_negative_clamps_to_zero(self) -> None:
        assert format_duration(-5) == "00:00:00.00"


def test_split_milliseconds() -> None:
    assert split_milliseconds(3_661_230) == (1, 1, 1, 23)
    assert split_milliseconds(59_999) == (0, 0, 59, 99)
