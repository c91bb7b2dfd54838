"""Serializers for request validation and domain model responses."""

import datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.utils import timezone
from rest_framework import serializers

from scheduling.domain import (
    Capacity,
    LocalTime,
    Location,
    Money,
    Recurrence,
    Schedule,
    SessionDetails,
    SessionTemplateDraft,
    TimeslotDefinition,
)
from scheduling.domain.errors import InvalidTimezoneError
from scheduling.domain.models import (
    MAX_PARTICIPANTS,
    MAX_WAITLIST,
    FeeType,
    SessionType,
    TimeslotType,
    Visibility,
)
from scheduling.domain.timezones import get_zone
from scheduling.domain.value_objects import TIME_FORMAT_REGEX

MAX_END_DATE_MONTHS = 12
MAX_START_DATE_DAYS_FROM_NOW = 30

TIME_ERROR = "Time must be in HH:MM format with 15 minute intervals"


def _choices(enum_type) -> list[str]:
    return [member.value for member in enum_type]


class QuarterHourField(serializers.RegexField):
    def __init__(self, **kwargs):
        super().__init__(TIME_FORMAT_REGEX, error_messages={"invalid": TIME_ERROR}, **kwargs)


# Input


class LocationInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    place_id = serializers.CharField(max_length=200)
    address = serializers.CharField(max_length=300)
    timezone = serializers.CharField(max_length=64)

    def validate_timezone(self, value: str) -> str:
        try:
            get_zone(value)
        except InvalidTimezoneError as e:
            raise serializers.ValidationError(e.message) from e
        return value


class TimeslotInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False, allow_null=True)
    type = serializers.ChoiceField(choices=_choices(TimeslotType))
    start_time = QuarterHourField(required=False, allow_null=True)
    end_time = QuarterHourField(required=False, allow_null=True)
    duration = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    fee_type = serializers.ChoiceField(choices=_choices(FeeType))
    fee = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    discounts = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    max_participants = serializers.IntegerField(min_value=1, max_value=MAX_PARTICIPANTS)
    max_waitlist = serializers.IntegerField(min_value=0, max_value=MAX_WAITLIST, default=0)
    permanent_participants = serializers.ListField(
        child=serializers.CharField(max_length=64), required=False, default=list
    )

    def validate(self, attrs):
        if attrs["type"] == TimeslotType.DURATION.value and not attrs.get("duration"):
            raise serializers.ValidationError({"duration": "Duration is required"})
        if attrs["type"] == TimeslotType.START_END.value:
            start, end = attrs.get("start_time"), attrs.get("end_time")
            if not start or not end:
                raise serializers.ValidationError("Start and end time are required")
            if end <= start:
                raise serializers.ValidationError("End time must be after start time")
        validate_roster(attrs["permanent_participants"], attrs["max_participants"])
        return attrs

    @staticmethod
    def to_definition(attrs) -> TimeslotDefinition:
        fee = attrs.get("fee")
        return TimeslotDefinition(
            name=attrs.get("name"),
            type=TimeslotType(attrs["type"]),
            start_time=LocalTime(attrs["start_time"]) if attrs.get("start_time") else None,
            end_time=LocalTime(attrs["end_time"]) if attrs.get("end_time") else None,
            duration=attrs.get("duration"),
            fee_type=FeeType(attrs["fee_type"]),
            fee=Money(fee) if fee is not None else None,
            discounts=tuple(attrs.get("discounts", ())),
            max_participants=Capacity(attrs["max_participants"]),
            max_waitlist=Capacity(attrs["max_waitlist"]),
            permanent_participants=tuple(attrs.get("permanent_participants", ())),
        )


def validate_roster(roster: list[str], max_participants: int) -> None:
    if len(set(roster)) != len(roster):
        raise serializers.ValidationError(
            {"permanent_participants": "Permanent participants must be unique"}
        )
    if len(roster) > max_participants:
        raise serializers.ValidationError(
            {"permanent_participants": "Permanent participants cannot exceed max participants"}
        )


def validate_timeslot_totals(timeslots) -> None:
    total = sum(ts["max_participants"] for ts in timeslots)
    if total > MAX_PARTICIPANTS:
        raise serializers.ValidationError(
            {"timeslots": f"Total participants cannot exceed {MAX_PARTICIPANTS}"}
        )


class SessionTemplateInputSerializer(serializers.Serializer):
    """Validates a new template. Boundary dates are checked by the service."""

    club_id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=300, required=False, allow_null=True)
    session_type = serializers.ChoiceField(choices=_choices(SessionType))
    visibility = serializers.ChoiceField(choices=_choices(Visibility))
    payment_type = serializers.CharField(max_length=16, default="cash")
    location = LocationInputSerializer()
    logo = serializers.URLField(required=False, allow_null=True)
    banner = serializers.URLField(required=False, allow_null=True)
    grace_time = serializers.DictField(required=False, allow_null=True)
    level_range = serializers.ListField(
        child=serializers.FloatField(min_value=0), min_length=2, max_length=2,
        required=False, allow_null=True,
    )

    recurrence = serializers.ChoiceField(choices=_choices(Recurrence))
    start_time = QuarterHourField()
    end_time = QuarterHourField()
    date = serializers.DateField(required=False, allow_null=True)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    day_of_week = serializers.IntegerField(min_value=0, max_value=6, required=False, allow_null=True)
    day_of_month = serializers.IntegerField(
        min_value=1, max_value=31, required=False, allow_null=True
    )

    timeslots = TimeslotInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time"})

        latest_start = timezone.now().date() + datetime.timedelta(days=MAX_START_DATE_DAYS_FROM_NOW)
        if attrs["recurrence"] == Recurrence.ONE_TIME.value:
            if attrs.get("date") and attrs["date"] > latest_start:
                raise serializers.ValidationError(
                    {"date": "Session date must be within 30 days from now"}
                )
        else:
            start, end = attrs.get("start_date"), attrs.get("end_date")
            if start and start > latest_start:
                raise serializers.ValidationError(
                    {"start_date": "Start date must be within 30 days from now"}
                )
            if start and end:
                if end < start:
                    raise serializers.ValidationError(
                        {"end_date": "End date must not be before start date"}
                    )
                if end > start + relativedelta(months=MAX_END_DATE_MONTHS):
                    raise serializers.ValidationError(
                        {"end_date": "End date must be within 12 months of start date"}
                    )

        level_range = attrs.get("level_range")
        if level_range and level_range[0] > level_range[1]:
            raise serializers.ValidationError({"level_range": "Invalid level range"})

        validate_timeslot_totals(attrs["timeslots"])
        return attrs

    def to_draft(self, created_by: str) -> SessionTemplateDraft:
        data = self.validated_data
        schedule = Schedule(
            start_time=LocalTime(data["start_time"]),
            end_time=LocalTime(data["end_time"]),
            date=data.get("date"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            day_of_week=data.get("day_of_week"),
            day_of_month=data.get("day_of_month"),
        )
        level_range = data.get("level_range")
        details = SessionDetails(
            name=data["name"],
            session_type=SessionType(data["session_type"]),
            visibility=Visibility(data["visibility"]),
            location=Location(**data["location"]),
            schedule=schedule,
            payment_type=data["payment_type"],
            description=data.get("description"),
            logo=data.get("logo"),
            banner=data.get("banner"),
            grace_time=data.get("grace_time"),
            level_range=tuple(level_range) if level_range else None,
        )
        return SessionTemplateDraft(
            club_id=data["club_id"],
            created_by=created_by,
            recurrence=Recurrence(data["recurrence"]),
            details=details,
            timeslots=tuple(
                TimeslotInputSerializer.to_definition(ts) for ts in data["timeslots"]
            ),
        )


class SessionTemplateUpdateSerializer(serializers.Serializer):
    """Partial update of pass-through fields and timeslot definitions."""

    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(max_length=300, required=False, allow_null=True)
    session_type = serializers.ChoiceField(choices=_choices(SessionType), required=False)
    visibility = serializers.ChoiceField(choices=_choices(Visibility), required=False)
    payment_type = serializers.CharField(max_length=16, required=False)
    logo = serializers.URLField(required=False, allow_null=True)
    banner = serializers.URLField(required=False, allow_null=True)
    grace_time = serializers.DictField(required=False, allow_null=True)
    level_range = serializers.ListField(
        child=serializers.FloatField(min_value=0), min_length=2, max_length=2,
        required=False, allow_null=True,
    )
    timeslots = TimeslotInputSerializer(many=True, allow_empty=False, required=False)

    def validate(self, attrs):
        if "timeslots" in attrs:
            validate_timeslot_totals(attrs["timeslots"])
        return attrs

    def to_changes(self) -> dict:
        changes = dict(self.validated_data)
        if "session_type" in changes:
            changes["session_type"] = SessionType(changes["session_type"])
        if "visibility" in changes:
            changes["visibility"] = Visibility(changes["visibility"])
        if changes.get("level_range"):
            changes["level_range"] = tuple(changes["level_range"])
        if "timeslots" in changes:
            changes["timeslots"] = tuple(
                TimeslotInputSerializer.to_definition(ts) for ts in changes["timeslots"]
            )
        return changes


class GenerateInstancesSerializer(serializers.Serializer):
    window_start = serializers.DateTimeField(required=False, allow_null=True)
    window_end = serializers.DateTimeField(required=False, allow_null=True)


class RosterSerializer(serializers.Serializer):
    permanent_participants = serializers.ListField(
        child=serializers.CharField(max_length=64), allow_empty=True
    )

    def validate_permanent_participants(self, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Permanent participants must be unique")
        return value


class DateRangeSerializer(serializers.Serializer):
    from_date = serializers.DateTimeField()
    to_date = serializers.DateTimeField()


# Output


class LocationSerializer(serializers.Serializer):
    name = serializers.CharField()
    place_id = serializers.CharField()
    address = serializers.CharField()
    timezone = serializers.CharField()


class ScheduleSerializer(serializers.Serializer):
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    date = serializers.DateField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    day_of_week = serializers.IntegerField()
    day_of_month = serializers.IntegerField()


class TimeslotDefinitionSerializer(serializers.Serializer):
    name = serializers.CharField()
    type = serializers.CharField(source="type.value")
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    duration = serializers.IntegerField()
    fee_type = serializers.CharField(source="fee_type.value")
    fee = serializers.CharField()
    discounts = serializers.ListField(child=serializers.DictField())
    max_participants = serializers.IntegerField(source="max_participants.value")
    max_waitlist = serializers.IntegerField(source="max_waitlist.value")
    permanent_participants = serializers.ListField(child=serializers.CharField())


class TimeslotSerializer(serializers.Serializer):
    id = serializers.CharField()
    definition = TimeslotDefinitionSerializer()
    num_participants = serializers.IntegerField()
    num_waitlisted = serializers.IntegerField()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        return {"id": data["id"], **data.pop("definition"), **data}


class SessionDetailsFields(serializers.Serializer):
    name = serializers.CharField(source="details.name")
    description = serializers.CharField(source="details.description")
    session_type = serializers.CharField(source="details.session_type.value")
    visibility = serializers.CharField(source="details.visibility.value")
    payment_type = serializers.CharField(source="details.payment_type")
    location = LocationSerializer(source="details.location")
    schedule = ScheduleSerializer(source="details.schedule")
    logo = serializers.CharField(source="details.logo")
    banner = serializers.CharField(source="details.banner")
    grace_time = serializers.DictField(source="details.grace_time")
    level_range = serializers.ListField(child=serializers.FloatField(), source="details.level_range")


class SessionTemplateSerializer(SessionDetailsFields):
    """Serializer for SessionTemplate domain model."""

    id = serializers.CharField()
    club_id = serializers.CharField()
    created_by = serializers.CharField()
    recurrence = serializers.CharField(source="recurrence.value")
    timeslots = TimeslotDefinitionSerializer(many=True)
    is_active = serializers.BooleanField()
    next_scheduled_id = serializers.CharField()
    created_at = serializers.DateTimeField()
    modified_at = serializers.DateTimeField()


class SessionInstanceSerializer(SessionDetailsFields):
    """Serializer for SessionInstance domain model."""

    id = serializers.CharField()
    template_id = serializers.CharField()
    club_id = serializers.CharField()
    instance_date = serializers.DateTimeField()
    status = serializers.CharField(source="status.value")
    timeslots = TimeslotSerializer(many=True)
    created_at = serializers.DateTimeField()


class SessionParticipantSerializer(serializers.Serializer):
    id = serializers.CharField()
    instance_id = serializers.CharField()
    timeslot_id = serializers.CharField()
    user_id = serializers.CharField()
    joined_at = serializers.DateTimeField()
    is_waitlisted = serializers.BooleanField()
