"""Unit tests for the recurrence calculator."""

import datetime

import pytest

from scheduling.domain import LocalTime, Recurrence, Schedule
from scheduling.domain.errors import RecurrenceBoundaryRequiredError
from scheduling.domain.recurrence import generate_instance_dates
from scheduling.domain.timezones import local_date, local_midnight

NY = "America/New_York"


def schedule(**kwargs) -> Schedule:
    return Schedule(start_time=LocalTime("18:00"), end_time=LocalTime("20:00"), **kwargs)


def local_days(dates, timezone=NY):
    return [local_date(d, timezone) for d in dates]


class TestBoundaries:
    def test_one_time_requires_date(self):
        """One-time schedules without a date raise."""
        with pytest.raises(RecurrenceBoundaryRequiredError):
            generate_instance_dates(Recurrence.ONE_TIME, schedule(), NY, max_count=1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_date": datetime.date(2024, 3, 4)},
            {"end_date": datetime.date(2024, 4, 1)},
        ],
    )
    def test_recurring_requires_both_dates(self, kwargs):
        """Recurring schedules need start and end dates."""
        with pytest.raises(RecurrenceBoundaryRequiredError):
            generate_instance_dates(Recurrence.DAILY, schedule(**kwargs), NY, max_count=7)


class TestOneTime:
    def test_single_local_midnight(self):
        """A one-time template yields its date at local midnight."""
        dates = generate_instance_dates(
            Recurrence.ONE_TIME, schedule(date=datetime.date(2024, 3, 10)), NY, max_count=1
        )
        assert dates == [local_midnight(datetime.date(2024, 3, 10), NY)]


class TestWeekly:
    def test_four_mondays_across_dst(self):
        """Monday start, end +28 days yields 4 dates 7 local days apart across DST."""
        start = datetime.date(2024, 3, 4)  # Monday; DST starts Sunday March 10
        dates = generate_instance_dates(
            Recurrence.WEEKLY,
            schedule(start_date=start, end_date=start + datetime.timedelta(days=28)),
            NY,
            max_count=4,
        )

        assert len(dates) == 4
        days = local_days(dates)
        assert days == [start + datetime.timedelta(weeks=i) for i in range(4)]
        assert all(d.weekday() == 0 for d in days)
        # local midnight, not a fixed 24h multiple
        assert dates[1] - dates[0] == datetime.timedelta(days=7, hours=-1)
        assert dates[2] - dates[1] == datetime.timedelta(days=7)

    def test_batch_capped_at_max_count(self):
        """Only max_count dates are returned."""
        start = datetime.date(2024, 3, 4)
        dates = generate_instance_dates(
            Recurrence.WEEKLY,
            schedule(start_date=start, end_date=start + datetime.timedelta(days=28)),
            NY,
            max_count=2,
        )
        assert local_days(dates) == [start, start + datetime.timedelta(weeks=1)]

    def test_day_of_week_anchors_first_occurrence(self):
        """day_of_week=3 (Wednesday) starts on the first Wednesday on or after start_date."""
        dates = generate_instance_dates(
            Recurrence.WEEKLY,
            schedule(
                start_date=datetime.date(2024, 3, 4),
                end_date=datetime.date(2024, 3, 31),
                day_of_week=3,
            ),
            NY,
            max_count=10,
        )
        assert local_days(dates) == [
            datetime.date(2024, 3, 6),
            datetime.date(2024, 3, 13),
            datetime.date(2024, 3, 20),
            datetime.date(2024, 3, 27),
        ]

    def test_window_start_keeps_series_alignment(self):
        """A window starting mid-week resumes on the series' weekday."""
        start = datetime.date(2024, 3, 4)
        dates = generate_instance_dates(
            Recurrence.WEEKLY,
            schedule(start_date=start, end_date=datetime.date(2024, 5, 1)),
            NY,
            max_count=2,
            window_start=local_midnight(datetime.date(2024, 3, 12), NY),
        )
        assert local_days(dates) == [datetime.date(2024, 3, 18), datetime.date(2024, 3, 25)]


class TestDaily:
    def test_stops_at_end_date(self):
        """Daily generation stops after end_date even below max_count."""
        dates = generate_instance_dates(
            Recurrence.DAILY,
            schedule(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 3)),
            NY,
            max_count=7,
        )
        assert local_days(dates) == [
            datetime.date(2024, 3, 1),
            datetime.date(2024, 3, 2),
            datetime.date(2024, 3, 3),
        ]

    def test_window_end_clamps(self):
        """window_end earlier than end_date clamps the batch."""
        dates = generate_instance_dates(
            Recurrence.DAILY,
            schedule(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31)),
            NY,
            max_count=7,
            window_end=local_midnight(datetime.date(2024, 3, 2), NY),
        )
        assert local_days(dates) == [datetime.date(2024, 3, 1), datetime.date(2024, 3, 2)]

    def test_window_entirely_after_end_is_empty(self):
        """A window past the end of the series yields nothing."""
        dates = generate_instance_dates(
            Recurrence.DAILY,
            schedule(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 3)),
            NY,
            max_count=7,
            window_start=local_midnight(datetime.date(2024, 3, 4), NY),
        )
        assert dates == []

    def test_deterministic(self):
        """Identical inputs give identical outputs."""
        args = (
            Recurrence.DAILY,
            schedule(start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 31)),
            NY,
        )
        assert generate_instance_dates(*args, max_count=7) == generate_instance_dates(
            *args, max_count=7
        )


class TestMonthly:
    def test_day_of_month_clamped_without_drift(self):
        """The 31st clamps to shorter months and returns to the 31st afterwards."""
        dates = generate_instance_dates(
            Recurrence.MONTHLY,
            schedule(
                start_date=datetime.date(2024, 1, 1),
                end_date=datetime.date(2024, 12, 31),
                day_of_month=31,
            ),
            NY,
            max_count=4,
        )
        assert local_days(dates) == [
            datetime.date(2024, 1, 31),
            datetime.date(2024, 2, 29),
            datetime.date(2024, 3, 31),
            datetime.date(2024, 4, 30),
        ]

    def test_day_before_start_moves_to_next_month(self):
        """A day_of_month already past in the start month begins next month."""
        dates = generate_instance_dates(
            Recurrence.MONTHLY,
            schedule(
                start_date=datetime.date(2024, 3, 20),
                end_date=datetime.date(2024, 6, 30),
                day_of_month=5,
            ),
            NY,
            max_count=4,
        )
        assert local_days(dates) == [
            datetime.date(2024, 4, 5),
            datetime.date(2024, 5, 5),
            datetime.date(2024, 6, 5),
        ]
