from datetime import datetime, timedelta

import pytest

from souqote.utils.formatting import (
    display_name,
    format_currency,
    format_date,
    initials,
    render_stars,
    time_ago,
)


@pytest.mark.parametrize(
    "amount, expected",
    [
        (1234, "AED 1,234"),
        (1234.5, "AED 1,234.50"),
        (0, "AED 0"),
        (None, "AED 0"),
        (-50, "-AED 50"),
    ],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_format_currency_other_code():
    assert format_currency(99.99, "USD") == "USD 99.99"


def test_time_ago():
    now = datetime(2024, 5, 1, 12, 0, 0)
    assert time_ago(now - timedelta(seconds=20), now) == "Just now"
    assert time_ago(now - timedelta(minutes=5), now) == "5m ago"
    assert time_ago(now - timedelta(hours=3, minutes=10), now) == "3h ago"
    assert time_ago(now - timedelta(days=2, hours=1), now) == "2d ago"
    assert time_ago(None, now) == ""


def test_render_stars():
    assert render_stars(4) == "★★★★☆"
    assert render_stars(3.5) == "★★★⯪☆"
    assert render_stars(0) == "☆☆☆☆☆"
    assert render_stars(9) == "★★★★★"


def test_display_name_and_initials():
    assert display_name({"first_name": "Aisha", "last_name": "Khan"}) == "Aisha Khan"
    assert display_name({"first_name": "", "last_name": "", "company_name": "Saleh Steel"}) == "Saleh Steel"
    assert display_name(None) == "User"

    assert initials({"first_name": "aisha", "last_name": "khan"}) == "AK"
    assert initials({"first_name": "Omar"}) == "O"
    assert initials({"company_name": "saleh steel"}) == "S"
    assert initials({}) == "U"


def test_format_date_uses_dubai_time():
    # 22:30 UTC is already the next day in Dubai (UTC+4)
    assert format_date(datetime(2024, 3, 14, 22, 30)) == "15 March 2024"
    assert format_date(None) == ""
