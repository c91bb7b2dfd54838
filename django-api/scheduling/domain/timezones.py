"""Timezone-aware calendar arithmetic.

Every function here is pure: a calendar day, a wall-clock time and an IANA
zone go in, an aware UTC instant comes out (or the reverse). Non-existent
local times (inside a spring-forward gap) resolve with ``fold=0``, i.e. with
the offset in effect before the transition.
"""

import datetime
import zoneinfo
from functools import lru_cache

from scheduling.domain.errors import InvalidTimezoneError
from scheduling.domain.value_objects import LocalTime


@lru_cache(maxsize=128)
def get_zone(timezone: str) -> zoneinfo.ZoneInfo:
    try:
        return zoneinfo.ZoneInfo(timezone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(timezone) from e


def local_date(instant: datetime.datetime, timezone: str) -> datetime.date:
    """Return the calendar day ``instant`` falls on in ``timezone``."""
    return instant.astimezone(get_zone(timezone)).date()


def local_midnight(day: datetime.date, timezone: str) -> datetime.datetime:
    """Return the UTC instant of 00:00 on ``day`` in ``timezone``."""
    return to_utc(day, datetime.time(0, 0), timezone)


def to_utc(day: datetime.date, wall_time: datetime.time, timezone: str) -> datetime.datetime:
    local = datetime.datetime.combine(day, wall_time, tzinfo=get_zone(timezone))
    return local.astimezone(datetime.UTC)


def instant_for_local_time(
    local_time: LocalTime,
    timezone: str,
    instance_date: datetime.datetime,
) -> datetime.datetime:
    """Return the UTC instant of ``local_time`` on the local day of ``instance_date``.

    ``instance_date`` is the instance's stored local-midnight instant; the
    calendar day is read back in ``timezone`` before the wall-clock time is
    applied, so the result never depends on the server's timezone.
    """
    return to_utc(local_date(instance_date, timezone), local_time.to_time(), timezone)
