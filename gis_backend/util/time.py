from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional


class TimePolicyError(ValueError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_db() -> datetime:
    """
    Returns "now" as naive UTC for writing into DB columns that are
    'timestamp without time zone'.
    """
    return utcnow().replace(tzinfo=None)


def to_db_utc_naive(dt: datetime) -> datetime:
    """
    Stores UTC as naive datetime (tzinfo=None).
    Naive input is interpreted as UTC; aware input is converted to UTC first.
    """
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Interprets naive DB timestamps as UTC and returns timezone-aware UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_z(dt: Optional[datetime]) -> Optional[str]:
    # Stable "Z" format for API output, millisecond precision.
    if dt is None:
        return None
    aware = from_db_utc_naive(dt)
    return aware.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_datetime_input(value: Any, field_name: str) -> datetime:
    """
    Accepts ISO-ish input: '2030-01-01', '2030-01-01T10:00', '2030-01-01 10:00:00',
    with optional 'Z' or '+07:00' suffix. Naive values are taken as UTC.
    Returns naive UTC for the DB.
    """
    if isinstance(value, datetime):
        return _to_db_or_error(value, field_name)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    s = str(value or "").strip()
    if not s:
        raise TimePolicyError(f"{field_name} is required")
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise TimePolicyError(
            f"{field_name} must be an ISO 8601 date or datetime (e.g. 2030-01-01 or 2030-01-01T10:00:00Z)"
        ) from None
    return _to_db_or_error(dt, field_name)


def _to_db_or_error(dt: datetime, field_name: str) -> datetime:
    # Offsets can push a date just inside year 1..9999 outside it.
    try:
        return to_db_utc_naive(dt)
    except (OverflowError, ValueError):
        raise TimePolicyError(f"{field_name} is out of the supported date range") from None


def parse_last_param_to_since(last: str, now: Optional[datetime] = None) -> datetime:
    """
    Accepts '24h', '7d', '60m'. Returns naive UTC.
    """
    s = (last or "").strip().lower()
    now = now or utcnow()
    units = {"h": "hours", "d": "days", "m": "minutes"}
    if len(s) < 2 or s[-1] not in units:
        raise TimePolicyError("last must look like 24h, 7d or 60m")
    try:
        amount = float(s[:-1])
    except ValueError:
        raise TimePolicyError("last must look like 24h, 7d or 60m") from None
    if not math.isfinite(amount):
        raise TimePolicyError("last must look like 24h, 7d or 60m")
    try:
        return to_db_utc_naive(now - timedelta(**{units[s[-1]]: amount}))
    except (OverflowError, ValueError):
        raise TimePolicyError("last is out of the supported range") from None
