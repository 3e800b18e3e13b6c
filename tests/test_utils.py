"""Tests for shared utility functions."""

from datetime import date

from salon_scheduler.utils import (
    add_months,
    format_hhmm,
    normalize_email,
    normalize_phone,
    parse_hhmm,
)


class TestParseHhmm:
    def test_parses_padded_time(self):
        assert parse_hhmm("09:30") == 570

    def test_parses_single_digit_hour(self):
        assert parse_hhmm("9:05") == 545

    def test_strips_whitespace(self):
        assert parse_hhmm(" 14:00 ") == 840

    def test_midnight_end_of_day(self):
        assert parse_hhmm("24:00") == 1440

    def test_rejects_out_of_range(self):
        assert parse_hhmm("25:00") is None
        assert parse_hhmm("10:60") is None
        assert parse_hhmm("24:30") is None

    def test_rejects_garbage(self):
        assert parse_hhmm("noon") is None
        assert parse_hhmm("") is None
        assert parse_hhmm(None) is None


class TestFormatHhmm:
    def test_pads_hours_and_minutes(self):
        assert format_hhmm(545) == "09:05"

    def test_off_grid_minute(self):
        assert format_hhmm(620) == "10:20"


class TestAddMonths:
    def test_simple_shift(self):
        assert add_months(date(2026, 6, 15), 2) == date(2026, 8, 15)

    def test_crosses_year(self):
        assert add_months(date(2026, 11, 30), 2) == date(2027, 1, 30)

    def test_clamps_to_month_end(self):
        assert add_months(date(2026, 12, 31), 2) == date(2027, 2, 28)


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("06 12 34 56 78") == "0612345678"

    def test_strips_dashes_and_parentheses(self):
        assert normalize_phone("(06) 12-34-56-78") == "0612345678"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+33 6 12 34 56 78") == "+33612345678"


class TestNormalizeEmail:
    def test_lowercases_and_trims(self):
        assert normalize_email("  Claire@Example.COM ") == "claire@example.com"
