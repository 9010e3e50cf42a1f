"""
Clock helpers.

Every component takes an injectable clock so derived values that depend
on "now" (monthly targets, the default summary period) can be tested
deterministically.

With LOCAL_TIMEZONE set, "now" carries a real zone, so month boundaries
keep the right offset across daylight-saving changes. Without it the
system's current fixed offset is used.
"""

from datetime import datetime, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from javali.config import get_settings

Clock = Callable[[], datetime]


def local_zone() -> Optional[tzinfo]:
    """The configured local zone, or None to fall back to the system offset."""
    name = get_settings().app.local_timezone
    return ZoneInfo(name) if name else None


def system_clock() -> datetime:
    """Current time, timezone-aware, in the local zone."""
    zone = local_zone()
    if zone is None:
        return datetime.now().astimezone()
    return datetime.now(zone)


def ensure_aware(value: datetime) -> datetime:
    """Attach the local zone to naive datetimes; aware values pass through."""
    if value.tzinfo is not None:
        return value
    zone = local_zone()
    if zone is None:
        return value.astimezone()
    return value.replace(tzinfo=zone)
