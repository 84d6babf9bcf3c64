"""Timezone utilities for institution-local dates."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.core.settings import settings

LOCAL_TZ = ZoneInfo(settings.timezone)


def today_local() -> date:
    """Get today's date in the institution's timezone."""
    return datetime.now(LOCAL_TZ).date()


def timestamp_to_local_date(seconds: float) -> date:
    """Convert a POSIX timestamp to a date in the institution's timezone."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone(LOCAL_TZ).date()
