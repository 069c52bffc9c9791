from datetime import date

from finance_tracker.formatting import (
    days_left_label,
    escape_dollar_for_markdown,
    format_currency,
    format_date,
    format_percent,
    month_label,
    overage_label,
)


def test_format_currency():
    assert format_currency(1234.56) == "$1,234.56"
    assert format_currency(-50) == "-$50.00"
    assert format_currency(0) == "$0.00"
    assert format_currency(1234.56, include_sign=False) == "1,234.56"


def test_escape_dollar_for_markdown():
    assert escape_dollar_for_markdown(12) == "\\$12.00"


def test_format_percent():
    assert format_percent(79.6) == "80%"
    assert format_percent(0) == "0%"


def test_format_date():
    assert format_date(date(2024, 3, 5)) == "Mar 5, 2024"
    assert format_date("2024-12-25") == "Dec 25, 2024"
    assert format_date(None) == ""


def test_month_label():
    assert month_label(2024, "03") == "March 2024"
    assert month_label(2023, 12) == "December 2023"


def test_overage_label():
    assert overage_label(60, 50) == "+$10.00 over"
    assert overage_label(50, 50) is None


def test_days_left_label():
    assert days_left_label(1) == "1 day left"
    assert days_left_label(12) == "12 days left"
    assert days_left_label(0) == "Due today"
    assert days_left_label(-3) == "3 days overdue"
