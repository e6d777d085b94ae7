"""Unit tests for last-checked parsing and elapsed-time classification."""

from datetime import UTC, datetime, timedelta

import pytest

from visa_radar.radar.timefmt import (
    NEVER_MINUTES,
    Parsed,
    Unparseable,
    classify,
    describe_last_checked,
    format_check_stamp,
    parse_last_checked,
)

NOW = datetime(2026, 10, 19, 9, 30)


class TestParseLastChecked:
    def test_iso_timestamp(self) -> None:
        assert parse_last_checked("2026-10-18T14:05:00", NOW) == Parsed(datetime(2026, 10, 18, 14, 5))

    def test_iso_date_only(self) -> None:
        assert parse_last_checked("2026-10-01", NOW) == Parsed(datetime(2026, 10, 1))

    def test_aware_iso_converted_to_local_naive(self) -> None:
        result = parse_last_checked("2026-10-18T14:05:00Z", NOW)
        expected = datetime(2026, 10, 18, 14, 5, tzinfo=UTC).astimezone().replace(tzinfo=None)
        assert result == Parsed(expected)

    def test_compact_stamp_uses_current_year(self) -> None:
        assert parse_last_checked("18/10 14:05", NOW) == Parsed(datetime(2026, 10, 18, 14, 5))

    def test_compact_stamp_unpadded(self) -> None:
        assert parse_last_checked("3/2 9:07", NOW) == Parsed(datetime(2026, 2, 3, 9, 7))

    def test_compact_stamp_in_future_rolls_back_one_year(self) -> None:
        # Written on 28 December, read in October of the following year
        assert parse_last_checked("28/12 17:45", NOW) == Parsed(datetime(2025, 12, 28, 17, 45))

    def test_compact_stamp_later_today_rolls_back(self) -> None:
        assert parse_last_checked("19/10 10:00", NOW) == Parsed(datetime(2025, 10, 19, 10, 0))

    def test_compact_stamp_surrounding_whitespace(self) -> None:
        assert parse_last_checked("  18/10 14:05 ", NOW) == Parsed(datetime(2026, 10, 18, 14, 5))

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_unparseable(self, raw: str | None) -> None:
        result = parse_last_checked(raw, NOW)
        assert isinstance(result, Unparseable)
        assert result.reason == "empty"

    @pytest.mark.parametrize("raw", ["yesterday", "18/10", "18-10 14:05", "14:05", "18/10/2026 14:05"])
    def test_unrecognized_format(self, raw: str) -> None:
        result = parse_last_checked(raw, NOW)
        assert isinstance(result, Unparseable)
        assert result.reason == "unrecognized format"

    @pytest.mark.parametrize("raw", ["31/2 10:00", "12/13 10:00", "1/1 25:00", "1/1 10:75"])
    def test_impossible_compact_values(self, raw: str) -> None:
        assert isinstance(parse_last_checked(raw, NOW), Unparseable)

    def test_leap_day_without_matching_previous_year(self) -> None:
        # 29/2 of 2028 is in the future on 1 Jan 2028 and 2027 has no 29 February
        now = datetime(2028, 1, 1, 8, 0)
        assert isinstance(parse_last_checked("29/2 10:00", now), Unparseable)


class TestClassify:
    def test_never(self) -> None:
        display = classify(None, NOW)
        assert display == {"text": "never", "minutes_elapsed": NEVER_MINUTES, "tier": "never"}

    def test_future_is_just_now(self) -> None:
        display = classify(NOW + timedelta(minutes=5), NOW)
        assert display["tier"] == "just_now"
        assert display["minutes_elapsed"] == 0

    @pytest.mark.parametrize(
        ("minutes", "tier", "text"),
        [
            (0, "fresh", "0 min"),
            (59, "fresh", "59 min"),
            (60, "recent", "1h 0min"),
            (239, "recent", "3h 59min"),
            (240, "aging", "4h 0min"),
            (1439, "aging", "23h 59min"),
            (1440, "stale", "1 day"),
            (2 * 1440 + 30, "stale", "2 days"),
        ],
    )
    def test_buckets(self, minutes: int, tier: str, text: str) -> None:
        display = classify(NOW - timedelta(minutes=minutes), NOW)
        assert display["tier"] == tier
        assert display["text"] == text
        assert display["minutes_elapsed"] == minutes

    def test_partial_minutes_round_down(self) -> None:
        display = classify(NOW - timedelta(minutes=29, seconds=59), NOW)
        assert display["minutes_elapsed"] == 29


class TestDescribeLastChecked:
    def test_missing_value_is_never(self) -> None:
        display = describe_last_checked(None, NOW)
        assert display["tier"] == "never"
        assert display["text"] == "never"

    def test_garbage_is_never_with_invalid_text(self) -> None:
        display = describe_last_checked("not a date", NOW)
        assert display["tier"] == "never"
        assert display["minutes_elapsed"] == NEVER_MINUTES
        assert display["text"] == "invalid date"

    def test_compact_stamp(self) -> None:
        display = describe_last_checked("19/10 9:00", NOW)
        assert display["tier"] == "fresh"
        assert display["minutes_elapsed"] == 30


class TestFormatCheckStamp:
    def test_day_month_unpadded_minutes_padded(self) -> None:
        assert format_check_stamp(datetime(2026, 3, 5, 8, 4)) == "5/3 8:04"

    def test_stamp_parses_back(self) -> None:
        stamp = format_check_stamp(datetime(2026, 10, 19, 9, 15))
        assert parse_last_checked(stamp, NOW) == Parsed(datetime(2026, 10, 19, 9, 15))
