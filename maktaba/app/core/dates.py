"""Timezone helpers shared by services and schemas."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from maktaba.app.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def shop_zone() -> ZoneInfo:
    return ZoneInfo(settings.SHOP_TIMEZONE)


def shop_today() -> date:
    return datetime.now(shop_zone()).date()


def shop_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` window of a calendar day in shop time."""
    zone = shop_zone()
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
