# app/leases/utils.py

from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Union

from dateutil import tz
from dateutil.relativedelta import relativedelta

from app.core.config import settings
from app.leases.schemas import ExpirationBucket, LeaseStatus

DateLike = Union[date, datetime]


def utcnow() -> datetime:
    """Current time in UTC"""
    return datetime.now(timezone.utc)


def lease_zone(name: Optional[str] = None) -> tzinfo:
    """Zone whose calendar days leases run on"""
    zone = tz.gettz(name or settings.lease_timezone)
    if zone is None:
        raise ValueError(f"Unknown lease timezone: {name or settings.lease_timezone}")
    return zone


def to_date(value: DateLike, zone: Optional[str] = None) -> date:
    """
    Reduce a datetime to its calendar date in the lease timezone.

    Aware datetimes are converted first, naive ones are read as already
    local. Dates pass through.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(lease_zone(zone))
        return value.date()
    return value


def lease_today(zone: Optional[str] = None) -> date:
    """Today's date in the lease timezone"""
    return to_date(utcnow(), zone)


def days_until_expiration(end_date: DateLike, now: DateLike) -> int:
    """
    Whole days from `now` until `end_date`.

    Both sides are calendar dates in the lease timezone (America/New_York
    unless LEASE_TIMEZONE says otherwise), so a lease ending today reads 0
    days until local midnight. Negative once the end date has passed.
    Recomputed on every read.
    """
    return (to_date(end_date) - to_date(now)).days


def expiration_bucket(
    days: int,
    urgent_days: Optional[int] = None,
    warning_days: Optional[int] = None,
) -> ExpirationBucket:
    """Display bucket for a days-until-expiration value"""
    urgent_days = settings.urgent_expiration_days if urgent_days is None else urgent_days
    warning_days = settings.warning_expiration_days if warning_days is None else warning_days

    if days < 0:
        return ExpirationBucket.EXPIRED
    if days <= urgent_days:
        return ExpirationBucket.URGENT
    if days <= warning_days:
        return ExpirationBucket.WARNING
    return ExpirationBucket.NORMAL


def effective_status(status: str, end_date: DateLike, now: DateLike) -> LeaseStatus:
    """
    Status as shown to callers: an ACTIVE lease past its end date is EXPIRED.
    """
    status = LeaseStatus(status)
    if status == LeaseStatus.ACTIVE and days_until_expiration(end_date, now) < 0:
        return LeaseStatus.EXPIRED
    return status


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the end of shorter months"""
    return start + relativedelta(months=months)


def in_same_month(moment: Optional[DateLike], now: DateLike) -> bool:
    """Whether `moment` falls in the calendar month of `now`, both read in the lease timezone"""
    if moment is None:
        return False
    moment, now = to_date(moment), to_date(now)
    return moment.year == now.year and moment.month == now.month
