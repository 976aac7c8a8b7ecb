"""Tests for date parser with relative dates."""

import pytest
from datetime import date, datetime, timedelta
from dateutil.relativedelta import relativedelta
from pathxpress.utils.date_parser import parse_date, get_date_range, month_to_date_bounds


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2025-01-15")
    assert result == date(2025, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    assert parse_date("today") == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    assert parse_date("yesterday") == date.today() - timedelta(days=1)


def test_parse_tomorrow():
    """Test parsing 'tomorrow'."""
    assert parse_date(" Tomorrow ") == date.today() + timedelta(days=1)


def test_parse_this_month():
    """Test parsing 'this month'."""
    today = date.today()
    assert parse_date("this month") == date(today.year, today.month, 1)


def test_parse_last_month():
    """Test parsing 'last month'."""
    result = parse_date("last month")
    # Should be first day of last month
    assert result == (date.today() - relativedelta(months=1)).replace(day=1)


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    # These should all work via dateutil parser
    assert parse_date("January 15, 2025") == date(2025, 1, 15)
    assert parse_date("15/01/2025") == date(2025, 1, 15)


def test_parse_invalid():
    """Test parsing garbage."""
    with pytest.raises(ValueError):
        parse_date("not a date at all")


def test_get_date_range_this_month():
    """Test get_date_range for this-month."""
    today = date.today()
    start, end = get_date_range("this-month")
    assert start == date(today.year, today.month, 1)
    assert end == today


def test_get_date_range_last_month():
    """Test get_date_range for last-month."""
    today = date.today()
    start, end = get_date_range("last-month")
    expected_start = (today - relativedelta(months=1)).replace(day=1)
    # Last day of last month (day before first day of current month)
    expected_end = today.replace(day=1) - timedelta(days=1)
    assert start == expected_start
    assert end == expected_end
    assert end.month == expected_start.month


def test_get_date_range_explicit_month():
    """Test a YYYY-MM period covers the whole month."""
    assert get_date_range("2025-02") == (date(2025, 2, 1), date(2025, 2, 28))
    assert get_date_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert get_date_range("2025-12") == (date(2025, 12, 1), date(2025, 12, 31))


def test_get_date_range_invalid_period():
    """Test get_date_range with invalid period."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("last-fortnight")


def test_month_to_date_bounds():
    """Test the volume window runs from the 1st through the end of as_of."""
    start, end = month_to_date_bounds(date(2025, 3, 17))
    assert start == datetime(2025, 3, 1)
    assert end == datetime(2025, 3, 18)


def test_month_to_date_bounds_month_end():
    """Test the window end rolls into the next month on the last day."""
    start, end = month_to_date_bounds(date(2025, 12, 31))
    assert start == datetime(2025, 12, 1)
    assert end == datetime(2026, 1, 1)
