from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def today_in_timezone(tz_name: str) -> date:
    try:
        tz = ZoneInfo(tz_name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        # Windows/dev environments may not have IANA tzdata installed.
        logger.warning("Unknown timezone %r; falling back to server local date", tz_name)
        return date.today()
    return datetime.now(tz).date()


def resolve_today(override: date | None, tz_name: str) -> date:
    if override is not None:
        return override
    return today_in_timezone(tz_name)
