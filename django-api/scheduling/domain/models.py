"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in scheduling/models.py (persistence layer).
"""

import datetime
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable

from scheduling.domain.value_objects import (
    Capacity,
    InstanceId,
    LocalTime,
    Money,
    ParticipantId,
    TemplateId,
)

MAX_PARTICIPANTS = 100
MAX_WAITLIST = 50


class Recurrence(str, Enum):
    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def is_recurring(self) -> bool:
        return self is not Recurrence.ONE_TIME


class InstanceStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "InstanceStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS = {
    InstanceStatus.NOT_STARTED: {
        InstanceStatus.IN_PROGRESS,
        InstanceStatus.COMPLETED,
        InstanceStatus.CANCELLED,
    },
    InstanceStatus.IN_PROGRESS: {InstanceStatus.COMPLETED, InstanceStatus.CANCELLED},
    InstanceStatus.COMPLETED: set(),
    InstanceStatus.CANCELLED: set(),
}


class SessionType(str, Enum):
    SOCIAL = "social"
    TRAINING = "training"


class Visibility(str, Enum):
    MEMBERS_ONLY = "members_only"
    PUBLIC = "public"


class TimeslotType(str, Enum):
    DURATION = "duration"
    START_END = "start_end"


class FeeType(str, Enum):
    SPLIT = "split"
    FIXED = "fixed"


@dataclass(frozen=True)
class Location:
    name: str
    place_id: str
    address: str
    timezone: str


@dataclass(frozen=True)
class Schedule:
    """When a session happens.

    One-time sessions use ``date``; recurring ones use ``start_date`` and
    ``end_date``. ``day_of_week`` counts from Sunday (0) to Saturday (6).
    """

    start_time: LocalTime
    end_time: LocalTime
    date: datetime.date | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    day_of_week: int | None = None
    day_of_month: int | None = None

    def __post_init__(self) -> None:
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        if self.day_of_week is not None and not 0 <= self.day_of_week <= 6:
            raise ValueError("Day of week must be between 0 and 6")
        if self.day_of_month is not None and not 1 <= self.day_of_month <= 31:
            raise ValueError("Day of month must be between 1 and 31")

    @property
    def final_date(self) -> datetime.date | None:
        """Last calendar day of the series."""
        return self.end_date if self.date is None else self.date


@dataclass(frozen=True)
class TimeslotDefinition:
    """Static definition of a bookable timeslot, as configured on a template."""

    type: TimeslotType
    fee_type: FeeType
    max_participants: Capacity
    max_waitlist: Capacity
    permanent_participants: tuple[str, ...] = ()
    name: str | None = None
    start_time: LocalTime | None = None
    end_time: LocalTime | None = None
    duration: int | None = None
    fee: Money | None = None
    discounts: tuple[dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        if not 1 <= self.max_participants.value <= MAX_PARTICIPANTS:
            raise ValueError(f"Max participants must be between 1 and {MAX_PARTICIPANTS}")
        if self.max_waitlist.value > MAX_WAITLIST:
            raise ValueError(f"Max waitlist cannot exceed {MAX_WAITLIST}")
        if len(set(self.permanent_participants)) != len(self.permanent_participants):
            raise ValueError("Permanent participants must be unique")
        if len(self.permanent_participants) > self.max_participants.value:
            raise ValueError("Permanent participants cannot exceed max participants")


@dataclass(frozen=True)
class Timeslot:
    """A timeslot of a concrete instance, with live occupancy counters."""

    id: str
    definition: TimeslotDefinition
    num_participants: int = 0
    num_waitlisted: int = 0

    @property
    def max_participants(self) -> int:
        return self.definition.max_participants.value

    @property
    def max_waitlist(self) -> int:
        return self.definition.max_waitlist.value

    @property
    def permanent_participants(self) -> tuple[str, ...]:
        return self.definition.permanent_participants


@dataclass(frozen=True)
class SessionDetails:
    """Descriptive fields shared by templates and the instances copied from them."""

    name: str
    session_type: SessionType
    visibility: Visibility
    location: Location
    schedule: Schedule
    payment_type: str = "cash"
    description: str | None = None
    logo: str | None = None
    banner: str | None = None
    grace_time: dict[str, Any] | None = None
    level_range: tuple[float, float] | None = None


@dataclass(frozen=True)
class SessionTemplateDraft:
    """Input for creating a template, before it has an identity."""

    club_id: str
    created_by: str
    recurrence: Recurrence
    details: SessionDetails
    timeslots: tuple[TimeslotDefinition, ...]


@dataclass(frozen=True)
class SessionTemplate:
    """Domain representation of a recurring session definition."""

    id: TemplateId
    club_id: str
    created_by: str
    recurrence: Recurrence
    details: SessionDetails
    timeslots: tuple[TimeslotDefinition, ...]
    is_active: bool
    created_at: datetime.datetime
    modified_at: datetime.datetime
    next_scheduled_id: str | None = None
    next_window_start: datetime.datetime | None = None
    deactivation_task_id: str | None = None

    @property
    def schedule(self) -> Schedule:
        return self.details.schedule

    @property
    def timezone(self) -> str:
        return self.details.location.timezone


@dataclass(frozen=True)
class SessionInstance:
    """Domain representation of one dated occurrence of a template."""

    id: InstanceId
    template_id: TemplateId
    club_id: str
    instance_date: datetime.datetime
    details: SessionDetails
    timeslots: tuple[Timeslot, ...]
    status: InstanceStatus
    created_at: datetime.datetime
    start_task_id: str | None = None
    end_task_id: str | None = None

    @property
    def timezone(self) -> str:
        return self.details.location.timezone

    def get_timeslot(self, timeslot_id: str) -> Timeslot | None:
        return next((ts for ts in self.timeslots if ts.id == timeslot_id), None)

    def with_timeslot(self, timeslot: Timeslot) -> "SessionInstance":
        timeslots = tuple(timeslot if ts.id == timeslot.id else ts for ts in self.timeslots)
        return replace(self, timeslots=timeslots)


@dataclass(frozen=True)
class SessionParticipant:
    """Domain representation of one user's enrollment in a timeslot."""

    id: ParticipantId
    instance_id: InstanceId
    timeslot_id: str
    user_id: str
    joined_at: datetime.datetime
    instance_date: datetime.datetime
    is_waitlisted: bool


@dataclass(frozen=True)
class Occupancy:
    """Confirmed and waitlisted head counts of one timeslot."""

    confirmed: int = 0
    waitlisted: int = 0
    waitlist: tuple[SessionParticipant, ...] = field(default=(), repr=False)

    @classmethod
    def from_participants(cls, participants: Iterable[SessionParticipant]) -> "Occupancy":
        confirmed = 0
        waitlist = []
        for participant in participants:
            if participant.is_waitlisted:
                waitlist.append(participant)
            else:
                confirmed += 1
        waitlist.sort(key=lambda p: p.joined_at)
        return cls(confirmed=confirmed, waitlisted=len(waitlist), waitlist=tuple(waitlist))
