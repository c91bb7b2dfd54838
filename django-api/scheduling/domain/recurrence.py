"""Recurrence calculator: schedule + timezone -> instance dates.

Occurrences are anchored on the series start (the first ``day_of_week`` or
``day_of_month`` on or after ``start_date``) and stepped on the local
calendar, so a window that begins mid-series lands on the same dates the
full series would produce.
"""

import datetime
from collections.abc import Iterator

from dateutil.relativedelta import relativedelta

from scheduling.domain.errors import RecurrenceBoundaryRequiredError
from scheduling.domain.models import Recurrence, Schedule
from scheduling.domain.timezones import local_date, local_midnight


def require_boundaries(recurrence: Recurrence, schedule: Schedule) -> None:
    """Raise if ``schedule`` lacks the dates ``recurrence`` needs."""
    if recurrence is Recurrence.ONE_TIME:
        if schedule.date is None:
            raise RecurrenceBoundaryRequiredError(recurrence.value)
    elif schedule.start_date is None or schedule.end_date is None:
        raise RecurrenceBoundaryRequiredError(recurrence.value)


def generate_instance_dates(
    recurrence: Recurrence,
    schedule: Schedule,
    timezone: str,
    *,
    max_count: int,
    window_start: datetime.datetime | None = None,
    window_end: datetime.datetime | None = None,
) -> list[datetime.datetime]:
    """Return ascending UTC instants of local midnight for each occurrence.

    At most ``max_count`` dates are returned. The optional window clamps the
    series: occurrences before the local day of ``window_start`` are skipped
    and generation stops after ``min(window_end, end_date)``.

    Raises:
        RecurrenceBoundaryRequiredError: If the schedule lacks ``date`` (one-time)
            or ``start_date``/``end_date`` (recurring).
    """
    require_boundaries(recurrence, schedule)

    if recurrence is Recurrence.ONE_TIME:
        return [local_midnight(schedule.date, timezone)]

    first_day = schedule.start_date
    if window_start is not None:
        first_day = max(first_day, local_date(window_start, timezone))
    last_day = schedule.end_date
    if window_end is not None:
        last_day = min(last_day, local_date(window_end, timezone))

    dates: list[datetime.datetime] = []
    for day in iter_occurrence_days(recurrence, schedule):
        if len(dates) >= max_count or day > last_day:
            break
        if day < first_day:
            continue
        dates.append(local_midnight(day, timezone))
    return dates


def iter_occurrence_days(recurrence: Recurrence, schedule: Schedule) -> Iterator[datetime.date]:
    """Yield the local calendar days of a recurring series, unbounded."""
    anchor = first_occurrence_day(recurrence, schedule)
    step = 0
    while True:
        yield anchor + _offset(recurrence, schedule, anchor, step)
        step += 1


def first_occurrence_day(recurrence: Recurrence, schedule: Schedule) -> datetime.date:
    start = schedule.start_date
    if recurrence is Recurrence.WEEKLY and schedule.day_of_week is not None:
        # day_of_week counts from Sunday, date.weekday() from Monday
        target = (schedule.day_of_week - 1) % 7
        return start + datetime.timedelta(days=(target - start.weekday()) % 7)
    if recurrence is Recurrence.MONTHLY and schedule.day_of_month is not None:
        candidate = start + relativedelta(day=schedule.day_of_month)
        if candidate < start:
            candidate = start + relativedelta(months=1, day=schedule.day_of_month)
        return candidate
    return start


def _offset(
    recurrence: Recurrence,
    schedule: Schedule,
    anchor: datetime.date,
    step: int,
) -> relativedelta:
    if recurrence is Recurrence.DAILY:
        return relativedelta(days=step)
    if recurrence is Recurrence.WEEKLY:
        return relativedelta(weeks=step)
    # Re-pin the day each month so Jan 31 -> Feb 28 -> Mar 31 does not drift.
    return relativedelta(months=step, day=schedule.day_of_month or anchor.day)
