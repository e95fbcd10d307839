"""
ISO date helpers shared by the scheduler and the aggregators.

Item dates come from loosely validated imports, so nothing here raises on
bad input: formatters return a placeholder, checks return False and
arithmetic falls back to the current time.
"""

import logging
import math
from datetime import date, datetime, timedelta, timezone, tzinfo

from revisa.domain.constants import DATE_PLACEHOLDER, DAY_SECONDS, SUB_DAY_OFFSET_DAYS

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_now(now: datetime | None = None) -> datetime:
    """Reference moment for a computation; naive values are read as UTC."""
    return parse_iso(now) or utcnow()


def parse_iso(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime (naive means UTC)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable date: {value!r}")
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(dt: datetime) -> str:
    """UTC timestamp with millisecond precision and a Z suffix."""
    utc = parse_iso(dt).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_iso(now: datetime | None = None) -> str:
    return to_iso(resolve_now(now))


def to_iso_date(dt: datetime | None, now: datetime | None = None) -> str:
    if dt is None:
        dt = resolve_now(now)
    return parse_iso(dt).astimezone(timezone.utc).date().isoformat()


def add_days(dt: datetime | None, days: float, tz: tzinfo = timezone.utc) -> datetime:
    """
    Offset a moment by a (possibly fractional) number of days.

    Tiny offsets are added as raw time so same-day re-reviews do not get
    rounded onto a calendar boundary. Larger ones advance whole calendar
    days in `tz` (wall clock preserved across DST) plus the remainder.
    """
    dt = parse_iso(dt)
    if dt is None:
        return utcnow()
    if days < SUB_DAY_OFFSET_DAYS:
        return dt + timedelta(days=days)

    whole = math.floor(days)
    local = dt.astimezone(tz)
    # Aware arithmetic in a zoneinfo tz is wall-clock arithmetic
    shifted = (local + timedelta(days=whole)).astimezone(tz)
    return (shifted + timedelta(days=days - whole)).astimezone(dt.tzinfo)


def add_days_iso(value: str | None, days: float, tz: tzinfo = timezone.utc) -> str:
    dt = parse_iso(value)
    if dt is None:
        return to_iso(utcnow())
    return to_iso(add_days(dt, days, tz))


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / DAY_SECONDS


def format_iso_to_br(value: str | None, tz: tzinfo = timezone.utc) -> str:
    """Render a timestamp as a dd/mm/yyyy display date."""
    return format_review_label_local(parse_iso(value), tz)


def format_review_label_local(dt: datetime | None, tz: tzinfo = timezone.utc) -> str:
    if dt is None:
        return DATE_PLACEHOLDER
    return dt.astimezone(tz).strftime("%d/%m/%Y")


def format_day_month(dt: datetime, tz: tzinfo = timezone.utc) -> str:
    return dt.astimezone(tz).strftime("%d/%m")


def format_time(dt: datetime, tz: tzinfo = timezone.utc) -> str:
    return dt.astimezone(tz).strftime("%H:%M")


def format_day_month_time(dt: datetime, tz: tzinfo = timezone.utc) -> str:
    return dt.astimezone(tz).strftime("%d/%m %H:%M")


def local_date(dt: datetime, tz: tzinfo = timezone.utc) -> date:
    return dt.astimezone(tz).date()


def is_review_future(value: str | None, now: datetime | None = None) -> bool:
    due = parse_iso(value)
    if due is None:
        return False
    return due > resolve_now(now)


def is_gold_window(
    next_review_date: str | None,
    now: datetime | None = None,
    window_hours: float = 12.0,
) -> bool:
    """True when `now` lies within +/- `window_hours` of the due date."""
    due = parse_iso(next_review_date)
    if due is None:
        return False
    diff = resolve_now(now) - due
    return abs(diff) <= timedelta(hours=window_hours)
