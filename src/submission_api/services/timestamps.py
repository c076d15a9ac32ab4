"""Clock helpers shared by the schemas, store and dashboard."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from submission_api.app.config import get_settings

# Matches what the n8n parser sends, e.g. "2025-03-14 09:26:53 EDT"
LOCAL_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the store keeps naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_timestamp(moment: datetime | None = None) -> str:
    """Format ``moment`` (default: now) in the configured local timezone."""
    tz_name = get_settings().local_timezone
    try:
        tz = ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        tz = timezone.utc
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).strftime(LOCAL_FORMAT)


def next_update_time(previous: datetime | None) -> datetime:
    """Return a mutation timestamp strictly later than ``previous``."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + _TICK
    return now
