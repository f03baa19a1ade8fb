"""
Quote numbering: Q-{YYYYMMDD}-{NNNN}, per organization per UTC day.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fencequote.pricing.quote_number import next_quote_number, quote_number_prefix


def test_first_quote_of_the_day():
    assert next_quote_number("org-1", datetime(2026, 3, 14, 9, 30), 0) == "Q-20260314-0001"


def test_number_follows_existing_count():
    assert next_quote_number("org-1", datetime(2026, 3, 14), 41) == "Q-20260314-0042"


def test_number_grows_past_four_digits():
    assert next_quote_number("org-1", datetime(2026, 3, 14), 10000) == "Q-20260314-10001"


def test_prefix_matches_number():
    as_of = datetime(2026, 12, 1, 23, 59)
    assert next_quote_number("org-1", as_of, 5).startswith(quote_number_prefix(as_of) + "-")
    assert quote_number_prefix(as_of) == "Q-20261201"


def test_aware_datetime_uses_utc_date():
    # 20:00 in UTC-05:00 is already the next day in UTC
    eastern = timezone(timedelta(hours=-5))
    as_of = datetime(2026, 3, 14, 20, 0, tzinfo=eastern)
    assert quote_number_prefix(as_of) == "Q-20260315"


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        next_quote_number("org-1", datetime(2026, 3, 14), -1)
