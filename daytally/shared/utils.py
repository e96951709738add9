import re
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from daytally.ledger.errors import InvalidInput

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_local(tz_name: str) -> date:
    """Today's calendar date in the given timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_date_string(date_string: str) -> date:
    if not DATE_PATTERN.match(date_string or ""):
        raise InvalidInput("Invalid date format. Please use YYYY-MM-DD.")
    try:
        return date.fromisoformat(date_string)
    except ValueError:
        raise InvalidInput("Invalid date format. Please use YYYY-MM-DD.")


def resolve_day(date_string: Optional[str], tz_name: str) -> str:
    """
    Turn the optional `date` query value into a ledger key.

    A missing value means today; days after today are refused.
    """
    today = today_local(tz_name)
    if not date_string:
        return today.isoformat()
    target = parse_date_string(date_string)
    if target > today:
        raise InvalidInput("Cannot log activities for a future date.")
    return target.isoformat()


def format_long_date(day: str) -> str:
    """2024-01-01 -> January 1, 2024"""
    d = date.fromisoformat(day)
    return f"{d:%B} {d.day}, {d.year}"
