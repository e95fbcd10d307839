from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from conftest import NOW

from revisa.application.utils.dates import (
    add_days,
    add_days_iso,
    days_between,
    format_day_month_time,
    format_iso_to_br,
    is_review_future,
    parse_iso,
    resolve_now,
    to_iso,
    to_iso_date,
    today_iso,
)

NEW_YORK = ZoneInfo("America/New_York")
SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def test_parse_iso_variants():
    assert parse_iso("2024-03-10T15:00:00Z") == NOW
    assert parse_iso("2024-03-10T15:00:00.000Z") == NOW
    assert parse_iso("2024-03-10T12:00:00-03:00") == NOW
    # Naive timestamps are read as UTC
    assert parse_iso("2024-03-10T15:00:00") == NOW
    assert parse_iso(NOW) is NOW


def test_parse_iso_bad_input():
    assert parse_iso(None) is None
    assert parse_iso("") is None
    assert parse_iso("amanhã") is None


def test_to_iso_is_utc_with_milliseconds():
    local = datetime(2024, 3, 10, 12, 0, 0, 123456, tzinfo=SAO_PAULO)
    assert to_iso(local) == "2024-03-10T15:00:00.123Z"
    assert to_iso_date(local) == "2024-03-10"
    assert today_iso(NOW) == "2024-03-10T15:00:00.000Z"


def test_add_days_small_offsets_are_raw_time():
    assert add_days(NOW, 0.01) == NOW + timedelta(days=0.01)
    assert add_days(NOW, 0.0) == NOW


def test_add_days_keeps_wall_clock_across_dst():
    # Noon EST the day before the 2024 US spring-forward
    start = datetime(2024, 3, 9, 17, 0, tzinfo=timezone.utc)

    assert add_days(start, 1, NEW_YORK) == datetime(2024, 3, 10, 16, 0, tzinfo=timezone.utc)
    assert add_days(start, 1, timezone.utc) == start + timedelta(days=1)


def test_add_days_adds_fractional_remainder():
    start = datetime(2024, 3, 9, 17, 0, tzinfo=timezone.utc)
    result = add_days(start, 1.5, NEW_YORK)

    assert result == datetime(2024, 3, 11, 4, 0, tzinfo=timezone.utc)
    assert result.tzinfo is timezone.utc


def test_add_days_without_base_uses_now():
    before = datetime.now(timezone.utc)
    result = add_days(None, 3)
    assert before <= result <= datetime.now(timezone.utc)


def test_add_days_iso():
    assert add_days_iso("2024-03-10T15:00:00.000Z", 2) == "2024-03-12T15:00:00.000Z"
    assert parse_iso(add_days_iso("garbage", 2)) is not None


def test_days_between():
    assert days_between(NOW, NOW + timedelta(hours=36)) == 1.5
    assert days_between(NOW, NOW - timedelta(days=2)) == -2.0


def test_display_formatting():
    assert format_iso_to_br("2024-03-10T15:00:00Z") == "10/03/2024"
    assert format_iso_to_br("2024-03-10T01:00:00Z", SAO_PAULO) == "09/03/2024"
    assert format_iso_to_br(None) == "-"
    assert format_iso_to_br("???") == "-"
    assert format_day_month_time(NOW, SAO_PAULO) == "10/03 12:00"


def test_is_review_future():
    assert is_review_future(to_iso(NOW + timedelta(minutes=1)), NOW)
    assert not is_review_future(to_iso(NOW), NOW)
    assert not is_review_future(None, NOW)


def test_resolve_now():
    assert resolve_now(NOW.replace(tzinfo=None)) == NOW
    assert resolve_now(NOW) is NOW
    before = datetime.now(timezone.utc)
    assert before <= resolve_now() <= datetime.now(timezone.utc)
