"""
Quote numbers: Q-{YYYYMMDD}-{NNNN}, per organization, restarting every UTC day.

The caller counts the organization's quotes that already carry today's
prefix. Two requests counting at the same time get the same number; the
store's unique constraint catches that and the caller retries.
"""

from datetime import datetime, timezone

QUOTE_NUMBER_PREFIX = "Q"


def _utc_date(as_of: datetime) -> datetime:
    # Naive datetimes are treated as UTC.
    if as_of.tzinfo is not None:
        return as_of.astimezone(timezone.utc)
    return as_of


def quote_number_prefix(as_of: datetime) -> str:
    return f"{QUOTE_NUMBER_PREFIX}-{_utc_date(as_of):%Y%m%d}"


def next_quote_number(organization_id: str, as_of: datetime, existing_count_for_prefix: int) -> str:
    """organization_id only scopes the count the caller passed in."""
    if existing_count_for_prefix < 0:
        raise ValueError(f"existing_count_for_prefix must be >= 0, got {existing_count_for_prefix}")
    return f"{quote_number_prefix(as_of)}-{str(existing_count_for_prefix + 1).zfill(4)}"
