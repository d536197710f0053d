"""Date range utilities."""

from datetime import datetime, timedelta
from typing import Optional, Tuple
import pytz

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_DAYS = 30


def parse_date(value: str) -> datetime:
    """Parse a YYYY-MM-DD date into a UTC datetime at midnight."""
    try:
        parsed = datetime.strptime(value.strip(), DATE_FORMAT)
    except ValueError:
        raise ValueError(f"invalid date '{value}': expected YYYY-MM-DD")
    return pytz.utc.localize(parsed)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the GitHub API."""
    if not value:
        return None
    from dateutil.parser import parse
    return parse(value)


def resolve_date_range(
    since: Optional[str] = None,
    until: Optional[str] = None,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Work out the (since, until) window to search.

    Explicit dates win. A lone ``since`` runs up to now, a lone ``until``
    goes back ``days`` from it, and with neither the window is the last
    ``days`` days.
    """
    if days is None:
        days = DEFAULT_DAYS
    if days < 0:
        raise ValueError(f"days must not be negative, got {days}")
    if now is None:
        now = datetime.now(pytz.utc)

    until_time = parse_date(until) if until else now
    if since:
        since_time = parse_date(since)
    else:
        since_time = until_time - timedelta(days=days)

    if since_time > until_time:
        raise ValueError(
            f"since date {since_time.strftime(DATE_FORMAT)} is after until date {until_time.strftime(DATE_FORMAT)}"
        )

    return since_time, until_time


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)
