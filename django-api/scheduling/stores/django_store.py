"""Django ORM implementation of the SessionStore."""

import datetime
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Any

from django.db import IntegrityError, transaction

from scheduling import models as orm
from scheduling.domain import (
    Capacity,
    InstanceId,
    InstanceStatus,
    LocalTime,
    Location,
    Money,
    ParticipantId,
    Recurrence,
    Schedule,
    SessionDetails,
    SessionInstance,
    SessionParticipant,
    SessionTemplate,
    SessionTemplateDraft,
    TemplateId,
    Timeslot,
    TimeslotDefinition,
)
from scheduling.domain.models import FeeType, SessionType, TimeslotType, Visibility
from scheduling.stores.interfaces import SessionStore


class DjangoSessionStore(SessionStore):
    """Relational session store using Django ORM."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    # Templates

    def create_template(self, draft: SessionTemplateDraft) -> SessionTemplate:
        row = orm.SessionTemplate(
            club_id=draft.club_id,
            created_by=draft.created_by,
            recurrence=draft.recurrence.value,
            timeslots=[definition_to_dict(d) for d in draft.timeslots],
            is_active=True,
        )
        _apply_template_details(row, draft.details)
        row.save()
        return template_to_domain(row)

    def get_template(
        self, template_id: TemplateId, *, for_update: bool = False
    ) -> SessionTemplate | None:
        queryset = orm.SessionTemplate.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.filter(id=template_id.value).first()
        return template_to_domain(row) if row else None

    def list_templates(self, club_id: str) -> list[SessionTemplate]:
        rows = orm.SessionTemplate.objects.filter(club_id=club_id).order_by("-created_at")
        return [template_to_domain(row) for row in rows]

    def save_template(self, template: SessionTemplate) -> SessionTemplate:
        row = orm.SessionTemplate.objects.get(id=template.id.value)
        _apply_template_details(row, template.details)
        row.timeslots = [definition_to_dict(d) for d in template.timeslots]
        row.is_active = template.is_active
        row.next_scheduled_id = template.next_scheduled_id
        row.next_window_start = template.next_window_start
        row.deactivation_task_id = template.deactivation_task_id
        row.save()
        return template_to_domain(row)

    # Instances

    def get_instance(
        self, instance_id: InstanceId, *, for_update: bool = False
    ) -> SessionInstance | None:
        queryset = orm.SessionInstance.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.filter(id=instance_id.value).first()
        return instance_to_domain(row) if row else None

    def get_instance_at_date(
        self, template_id: TemplateId, instance_date: datetime.datetime
    ) -> SessionInstance | None:
        row = orm.SessionInstance.objects.filter(
            template_id=template_id.value, instance_date=instance_date
        ).first()
        return instance_to_domain(row) if row else None

    def get_or_create_instance(
        self,
        template: SessionTemplate,
        instance_date: datetime.datetime,
        timeslots: tuple[Timeslot, ...],
    ) -> tuple[SessionInstance, bool]:
        details = template.details
        defaults = {
            "club_id": template.club_id,
            "name": details.name,
            "description": details.description,
            "session_type": details.session_type.value,
            "visibility": details.visibility.value,
            "payment_type": details.payment_type,
            "location": location_to_dict(details.location),
            "logo": details.logo,
            "banner": details.banner,
            "grace_time": details.grace_time,
            "level_min": details.level_range[0] if details.level_range else None,
            "level_max": details.level_range[1] if details.level_range else None,
            "schedule": schedule_to_dict(details.schedule),
            "timeslots": [timeslot_to_dict(ts) for ts in timeslots],
            "status": InstanceStatus.NOT_STARTED.value,
        }
        try:
            with transaction.atomic():
                row, created = orm.SessionInstance.objects.get_or_create(
                    template_id=template.id.value,
                    instance_date=instance_date,
                    defaults=defaults,
                )
        except IntegrityError:
            # Lost a race with a concurrent batch for the same date.
            row = orm.SessionInstance.objects.get(
                template_id=template.id.value, instance_date=instance_date
            )
            created = False
        return instance_to_domain(row), created

    def save_instance(self, instance: SessionInstance) -> SessionInstance:
        row = orm.SessionInstance.objects.get(id=instance.id.value)
        row.status = instance.status.value
        row.timeslots = [timeslot_to_dict(ts) for ts in instance.timeslots]
        row.start_task_id = instance.start_task_id
        row.end_task_id = instance.end_task_id
        row.save(
            update_fields=["status", "timeslots", "start_task_id", "end_task_id", "modified_at"]
        )
        return instance_to_domain(row)

    def list_instances(
        self,
        club_id: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
    ) -> list[SessionInstance]:
        rows = orm.SessionInstance.objects.filter(
            club_id=club_id,
            instance_date__gte=from_date,
            instance_date__lte=to_date,
        ).order_by("instance_date")
        return [instance_to_domain(row) for row in rows]

    def list_template_instances(
        self,
        template_id: TemplateId,
        *,
        status: InstanceStatus | None = None,
    ) -> list[SessionInstance]:
        rows = orm.SessionInstance.objects.filter(template_id=template_id.value)
        if status is not None:
            rows = rows.filter(status=status.value)
        return [instance_to_domain(row) for row in rows.order_by("instance_date")]

    # Participants

    def get_participant(
        self, instance_id: InstanceId, timeslot_id: str, user_id: str
    ) -> SessionParticipant | None:
        row = orm.SessionParticipant.objects.filter(
            instance_id=instance_id.value, timeslot_id=timeslot_id, user_id=user_id
        ).first()
        return participant_to_domain(row) if row else None

    def list_participants(
        self, instance_id: InstanceId, timeslot_id: str | None = None
    ) -> list[SessionParticipant]:
        rows = orm.SessionParticipant.objects.filter(instance_id=instance_id.value)
        if timeslot_id is not None:
            rows = rows.filter(timeslot_id=timeslot_id)
        return [participant_to_domain(row) for row in rows.order_by("joined_at")]

    def list_user_participations(
        self,
        user_id: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
    ) -> list[SessionParticipant]:
        rows = orm.SessionParticipant.objects.filter(
            user_id=user_id,
            instance_date__gte=from_date,
            instance_date__lte=to_date,
        ).order_by("instance_date")
        return [participant_to_domain(row) for row in rows]

    def create_participant(
        self,
        instance: SessionInstance,
        timeslot_id: str,
        user_id: str,
        *,
        joined_at: datetime.datetime,
        is_waitlisted: bool,
    ) -> SessionParticipant:
        row = orm.SessionParticipant.objects.create(
            instance_id=instance.id.value,
            timeslot_id=timeslot_id,
            user_id=user_id,
            joined_at=joined_at,
            instance_date=instance.instance_date,
            is_waitlisted=is_waitlisted,
        )
        return participant_to_domain(row)

    def save_participant(self, participant: SessionParticipant) -> SessionParticipant:
        orm.SessionParticipant.objects.filter(id=participant.id.value).update(
            joined_at=participant.joined_at,
            is_waitlisted=participant.is_waitlisted,
        )
        return participant

    def delete_participant(self, participant_id: ParticipantId) -> None:
        orm.SessionParticipant.objects.filter(id=participant_id.value).delete()


def _apply_template_details(row: orm.SessionTemplate, details: SessionDetails) -> None:
    schedule = details.schedule
    row.name = details.name
    row.description = details.description
    row.session_type = details.session_type.value
    row.visibility = details.visibility.value
    row.payment_type = details.payment_type
    row.location = location_to_dict(details.location)
    row.logo = details.logo
    row.banner = details.banner
    row.grace_time = details.grace_time
    row.level_min = details.level_range[0] if details.level_range else None
    row.level_max = details.level_range[1] if details.level_range else None
    row.start_time = schedule.start_time.value
    row.end_time = schedule.end_time.value
    row.date = schedule.date
    row.start_date = schedule.start_date
    row.end_date = schedule.end_date
    row.day_of_week = schedule.day_of_week
    row.day_of_month = schedule.day_of_month


def template_to_domain(row: orm.SessionTemplate) -> SessionTemplate:
    schedule = Schedule(
        start_time=LocalTime(row.start_time),
        end_time=LocalTime(row.end_time),
        date=row.date,
        start_date=row.start_date,
        end_date=row.end_date,
        day_of_week=row.day_of_week,
        day_of_month=row.day_of_month,
    )
    return SessionTemplate(
        id=TemplateId(value=row.id),
        club_id=row.club_id,
        created_by=row.created_by,
        recurrence=Recurrence(row.recurrence),
        details=_details_to_domain(row, schedule),
        timeslots=tuple(definition_from_dict(d) for d in row.timeslots),
        is_active=row.is_active,
        created_at=row.created_at,
        modified_at=row.modified_at,
        next_scheduled_id=row.next_scheduled_id,
        next_window_start=row.next_window_start,
        deactivation_task_id=row.deactivation_task_id,
    )


def instance_to_domain(row: orm.SessionInstance) -> SessionInstance:
    return SessionInstance(
        id=InstanceId(value=row.id),
        template_id=TemplateId(value=row.template_id),
        club_id=row.club_id,
        instance_date=row.instance_date,
        details=_details_to_domain(row, schedule_from_dict(row.schedule)),
        timeslots=tuple(timeslot_from_dict(ts) for ts in row.timeslots),
        status=InstanceStatus(row.status),
        created_at=row.created_at,
        start_task_id=row.start_task_id,
        end_task_id=row.end_task_id,
    )


def participant_to_domain(row: orm.SessionParticipant) -> SessionParticipant:
    return SessionParticipant(
        id=ParticipantId(value=row.id),
        instance_id=InstanceId(value=row.instance_id),
        timeslot_id=row.timeslot_id,
        user_id=row.user_id,
        joined_at=row.joined_at,
        instance_date=row.instance_date,
        is_waitlisted=row.is_waitlisted,
    )


def _details_to_domain(row: Any, schedule: Schedule) -> SessionDetails:
    level_range = None
    if row.level_min is not None and row.level_max is not None:
        level_range = (row.level_min, row.level_max)
    return SessionDetails(
        name=row.name,
        session_type=SessionType(row.session_type),
        visibility=Visibility(row.visibility),
        location=Location(**row.location),
        schedule=schedule,
        payment_type=row.payment_type,
        description=row.description,
        logo=row.logo,
        banner=row.banner,
        grace_time=row.grace_time,
        level_range=level_range,
    )


def location_to_dict(location: Location) -> dict[str, str]:
    return {
        "name": location.name,
        "place_id": location.place_id,
        "address": location.address,
        "timezone": location.timezone,
    }


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    def iso(value: datetime.date | None) -> str | None:
        return value.isoformat() if value else None

    return {
        "start_time": schedule.start_time.value,
        "end_time": schedule.end_time.value,
        "date": iso(schedule.date),
        "start_date": iso(schedule.start_date),
        "end_date": iso(schedule.end_date),
        "day_of_week": schedule.day_of_week,
        "day_of_month": schedule.day_of_month,
    }


def schedule_from_dict(data: dict[str, Any]) -> Schedule:
    def parse(value: str | None) -> datetime.date | None:
        return datetime.date.fromisoformat(value) if value else None

    return Schedule(
        start_time=LocalTime(data["start_time"]),
        end_time=LocalTime(data["end_time"]),
        date=parse(data.get("date")),
        start_date=parse(data.get("start_date")),
        end_date=parse(data.get("end_date")),
        day_of_week=data.get("day_of_week"),
        day_of_month=data.get("day_of_month"),
    )


def definition_to_dict(definition: TimeslotDefinition) -> dict[str, Any]:
    return {
        "name": definition.name,
        "type": definition.type.value,
        "start_time": definition.start_time.value if definition.start_time else None,
        "end_time": definition.end_time.value if definition.end_time else None,
        "duration": definition.duration,
        "fee_type": definition.fee_type.value,
        "fee": str(definition.fee) if definition.fee is not None else None,
        "discounts": list(definition.discounts),
        "max_participants": definition.max_participants.value,
        "max_waitlist": definition.max_waitlist.value,
        "permanent_participants": list(definition.permanent_participants),
    }


def definition_from_dict(data: dict[str, Any]) -> TimeslotDefinition:
    return TimeslotDefinition(
        name=data.get("name"),
        type=TimeslotType(data["type"]),
        start_time=LocalTime(data["start_time"]) if data.get("start_time") else None,
        end_time=LocalTime(data["end_time"]) if data.get("end_time") else None,
        duration=data.get("duration"),
        fee_type=FeeType(data["fee_type"]),
        fee=Money(Decimal(data["fee"])) if data.get("fee") is not None else None,
        discounts=tuple(data.get("discounts") or ()),
        max_participants=Capacity(data["max_participants"]),
        max_waitlist=Capacity(data["max_waitlist"]),
        permanent_participants=tuple(data.get("permanent_participants") or ()),
    )


def timeslot_to_dict(timeslot: Timeslot) -> dict[str, Any]:
    return {
        "id": timeslot.id,
        **definition_to_dict(timeslot.definition),
        "num_participants": timeslot.num_participants,
        "num_waitlisted": timeslot.num_waitlisted,
    }


def timeslot_from_dict(data: dict[str, Any]) -> Timeslot:
    return Timeslot(
        id=data["id"],
        definition=definition_from_dict(data),
        num_participants=data.get("num_participants", 0),
        num_waitlisted=data.get("num_waitlisted", 0),
    )
