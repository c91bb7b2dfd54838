"""Session scheduling service - the entry point for handlers and tasks.

Services:
- Depend only on interfaces (stores, timers)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or raise domain errors
"""

import datetime
import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any, TypeVar

from django.utils import timezone

from scheduling.domain import (
    InstanceId,
    InstanceStatus,
    SessionInstance,
    SessionParticipant,
    SessionTemplate,
    SessionTemplateDraft,
    TemplateId,
    TimeslotDefinition,
)
from scheduling.domain.errors import (
    InstanceNotFoundError,
    InvalidIdError,
    InvalidStatusTransitionError,
    StatusNotJoinableError,
    TemplateInactiveError,
    TemplateNotFoundError,
    TimeslotNotFoundError,
)
from scheduling.domain.recurrence import generate_instance_dates, require_boundaries
from scheduling.domain.timezones import get_zone
from scheduling.services.batches import RollingBatchScheduler
from scheduling.services.materializer import InstanceMaterializer
from scheduling.services.participation import ParticipationService
from scheduling.services.roster import RosterSynchronizer
from scheduling.services.transitions import StatusTransitionScheduler
from scheduling.stores.interfaces import SessionStore
from scheduling.timers.interfaces import TaskScheduler

logger = logging.getLogger(__name__)

DEFAULT_MAX_INSTANCES = {"one_time": 1, "daily": 7, "weekly": 4, "monthly": 4}

# Template fields an update may touch. Schedule, recurrence and location are
# fixed once instances exist.
UPDATABLE_DETAIL_FIELDS = frozenset(
    {
        "name",
        "description",
        "session_type",
        "visibility",
        "payment_type",
        "logo",
        "banner",
        "grace_time",
        "level_range",
    }
)

IdT = TypeVar("IdT", TemplateId, InstanceId)


def same_apart_from_roster(a: TimeslotDefinition, b: TimeslotDefinition) -> bool:
    return replace(a, permanent_participants=b.permanent_participants) == b


def parse_id(id_type: type[IdT], value: str) -> IdT:
    try:
        return id_type.from_string(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidIdError() from e


class SessionService:
    """Service for session template and instance operations."""

    def __init__(
        self,
        store: SessionStore,
        timers: TaskScheduler,
        clock: Callable[[], datetime.datetime] = timezone.now,
        max_instances: Mapping[str, int] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._max_instances = dict(max_instances or DEFAULT_MAX_INSTANCES)
        self._roster = RosterSynchronizer(store, clock)
        self._materializer = InstanceMaterializer(store, self._roster)
        self._transitions = StatusTransitionScheduler(store, timers)
        self._batches = RollingBatchScheduler(store, timers)
        self._participation = ParticipationService(store, clock)

    # Templates

    def create_template(self, draft: SessionTemplateDraft) -> SessionTemplate:
        """Persist a template, materialize its first batch and arm its deactivation.

        Raises:
            RecurrenceBoundaryRequiredError: If the schedule lacks its boundary dates.
            InvalidTimezoneError: If the location timezone is unknown.
        """
        require_boundaries(draft.recurrence, draft.details.schedule)
        get_zone(draft.details.location.timezone)

        with self._store.atomic():
            template = self._store.create_template(draft)
            logger.info(
                "Created %s template %s for club %s",
                template.recurrence.value,
                template.id,
                template.club_id,
            )
            _, dates = self._generate(template)
            template = self._batches.arm_next_batch(template, dates)
            return self._batches.arm_deactivation(template)

    def get_template(self, template_id: str) -> SessionTemplate:
        """Return a template by ID.

        Raises:
            InvalidIdError: If the template_id is not a valid UUID.
            TemplateNotFoundError: If the template does not exist.
        """
        template = self._store.get_template(parse_id(TemplateId, template_id))
        if template is None:
            raise TemplateNotFoundError()
        return template

    def list_templates(self, club_id: str) -> list[SessionTemplate]:
        return self._store.list_templates(club_id)

    def update_template(self, template_id: str, changes: Mapping[str, Any]) -> SessionTemplate:
        """Edit pass-through details and timeslot definitions of a template.

        Already materialized instances keep their copy. The one exception is a
        permanent roster edit to a timeslot whose definition is otherwise
        unchanged and still at the same position, which is carried over to
        instances that have not started yet.
        """
        tid = parse_id(TemplateId, template_id)
        with self._store.atomic():
            template = self._store.get_template(tid, for_update=True)
            if template is None:
                raise TemplateNotFoundError()

            detail_changes = {k: v for k, v in changes.items() if k in UPDATABLE_DETAIL_FIELDS}
            updated = replace(template, details=replace(template.details, **detail_changes))
            timeslots: tuple[TimeslotDefinition, ...] | None = changes.get("timeslots")
            if timeslots is not None:
                updated = replace(updated, timeslots=tuple(timeslots))
            updated = self._store.save_template(updated)
            logger.info("Updated template %s (%s)", tid, ", ".join(sorted(changes)))

            if timeslots is not None and len(timeslots) == len(template.timeslots):
                self._propagate_rosters(template, updated)
            return updated

    def generate_instances(
        self,
        template_id: str,
        window_start: datetime.datetime | None = None,
        window_end: datetime.datetime | None = None,
    ) -> list[SessionInstance]:
        """Materialize a batch on demand.

        The batch chain is re-armed from this batch unless it starts after the
        window of the pending continuation, which then stays armed.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            TemplateInactiveError: If the template has been deactivated.
        """
        tid = parse_id(TemplateId, template_id)
        with self._store.atomic():
            template = self._store.get_template(tid, for_update=True)
            if template is None:
                raise TemplateNotFoundError()
            if not template.is_active:
                raise TemplateInactiveError()

            instances, dates = self._generate(template, window_start, window_end)
            if self._batches.skips_pending_window(template, dates):
                logger.info(
                    "Batch of template %s starts after the pending window %s; chain kept",
                    tid,
                    template.next_window_start.isoformat(),
                )
            else:
                self._batches.arm_next_batch(template, dates)
            return instances

    def run_scheduled_batch(
        self,
        template_id: str,
        window_start: datetime.datetime,
        handle: str | None = None,
    ) -> list[SessionInstance]:
        """Body of an armed batch task.

        The batch is skipped when the template is gone, inactive, or when
        ``handle`` is not the template's current ``next_scheduled_id``.
        """
        tid = parse_id(TemplateId, template_id)
        with self._store.atomic():
            template = self._store.get_template(tid, for_update=True)
            if template is None:
                logger.warning("Batch task for missing template %s ignored", tid)
                return []
            if handle is not None and template.next_scheduled_id != handle:
                logger.info(
                    "Stale batch task %s for template %s skipped (current %s)",
                    handle,
                    tid,
                    template.next_scheduled_id,
                )
                return []
            if not template.is_active:
                logger.info("Template %s is inactive; batch skipped", tid)
                return []

            instances, dates = self._generate(template, window_start)
            self._batches.arm_next_batch(template, dates)
            return instances

    def deactivate_template(self, template_id: str) -> SessionTemplate | None:
        """Flip ``is_active`` off and revoke the pending batch task."""
        tid = parse_id(TemplateId, template_id)
        with self._store.atomic():
            template = self._store.get_template(tid, for_update=True)
            if template is None:
                logger.warning("Deactivation task for missing template %s ignored", tid)
                return None
            if not template.is_active:
                return template

            template = self._batches.cancel_pending(template)
            template = self._store.save_template(replace(template, is_active=False))
            logger.info("Deactivated template %s", tid)
            return template

    # Instances

    def get_instance(self, instance_id: str) -> tuple[SessionInstance, list[SessionParticipant]]:
        """Return an instance with its participation records.

        Raises:
            InvalidIdError: If the instance_id is not a valid UUID.
            InstanceNotFoundError: If the instance does not exist.
        """
        instance = self._store.get_instance(parse_id(InstanceId, instance_id))
        if instance is None:
            raise InstanceNotFoundError()
        return instance, self._store.list_participants(instance.id)

    def list_instances(
        self, club_id: str, from_date: datetime.datetime, to_date: datetime.datetime
    ) -> list[SessionInstance]:
        return self._store.list_instances(club_id, from_date, to_date)

    def list_participating_instances(
        self, user_id: str, from_date: datetime.datetime, to_date: datetime.datetime
    ) -> list[SessionInstance]:
        instances: dict[InstanceId, SessionInstance] = {}
        for participant in self._store.list_user_participations(user_id, from_date, to_date):
            if participant.instance_id in instances:
                continue
            instance = self._store.get_instance(participant.instance_id)
            if instance is not None:
                instances[instance.id] = instance
        return sorted(instances.values(), key=lambda i: i.instance_date)

    def apply_status_transition(self, instance_id: str, status: InstanceStatus) -> SessionInstance | None:
        return self._transitions.apply(parse_id(InstanceId, instance_id), status)

    def cancel_instance(self, instance_id: str) -> SessionInstance:
        """Cancel an instance and revoke its pending transition tasks.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
            InvalidStatusTransitionError: If the instance already completed or was cancelled.
        """
        iid = parse_id(InstanceId, instance_id)
        with self._store.atomic():
            instance = self._store.get_instance(iid, for_update=True)
            if instance is None:
                raise InstanceNotFoundError()
            if not instance.status.can_transition_to(InstanceStatus.CANCELLED):
                raise InvalidStatusTransitionError(
                    instance.status.value, InstanceStatus.CANCELLED.value
                )

            instance = self._transitions.disarm(instance)
            instance = self._store.save_instance(
                replace(instance, status=InstanceStatus.CANCELLED)
            )
            logger.info("Cancelled instance %s", iid)
            return instance

    def update_instance_roster(
        self, instance_id: str, timeslot_id: str, permanent_participants: list[str]
    ) -> SessionInstance:
        """Replace the permanent roster of one instance timeslot and reconcile records.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
            TimeslotNotFoundError: If the timeslot is not part of the instance.
            StatusNotJoinableError: If the instance is no longer ``not_started``.
            ValueError: If the roster has duplicates or exceeds the timeslot capacity.
        """
        iid = parse_id(InstanceId, instance_id)
        with self._store.atomic():
            instance = self._store.get_instance(iid, for_update=True)
            if instance is None:
                raise InstanceNotFoundError()
            timeslot = instance.get_timeslot(timeslot_id)
            if timeslot is None:
                raise TimeslotNotFoundError()
            if instance.status is not InstanceStatus.NOT_STARTED:
                raise StatusNotJoinableError()

            definition = replace(
                timeslot.definition, permanent_participants=tuple(permanent_participants)
            )
            previous = instance.timeslots
            instance = self._store.save_instance(
                instance.with_timeslot(replace(timeslot, definition=definition))
            )
            return self._roster.sync(instance, previous)

    # Participation

    def join(self, instance_id: str, timeslot_id: str, user_id: str) -> SessionParticipant:
        return self._participation.join(parse_id(InstanceId, instance_id), timeslot_id, user_id)

    def leave(self, instance_id: str, timeslot_id: str, user_id: str) -> None:
        self._participation.leave(parse_id(InstanceId, instance_id), timeslot_id, user_id)

    # Internals

    def _generate(
        self,
        template: SessionTemplate,
        window_start: datetime.datetime | None = None,
        window_end: datetime.datetime | None = None,
    ) -> tuple[list[SessionInstance], list[datetime.datetime]]:
        dates = generate_instance_dates(
            template.recurrence,
            template.schedule,
            template.timezone,
            max_count=self._max_instances[template.recurrence.value],
            window_start=window_start,
            window_end=window_end,
        )
        instances = []
        for instance_date in dates:
            instance, _ = self._materializer.materialize(template, instance_date)
            instances.append(self._transitions.arm(instance))
        return instances, dates

    def _propagate_rosters(self, old: SessionTemplate, new: SessionTemplate) -> None:
        # Only slots whose definition is otherwise unchanged carry their roster
        # over; a reordered or redefined slot is a different slot.
        changed = [
            index
            for index, (before, after) in enumerate(zip(old.timeslots, new.timeslots))
            if before.permanent_participants != after.permanent_participants
            and same_apart_from_roster(before, after)
        ]
        if not changed:
            return

        for instance in self._store.list_template_instances(
            new.id, status=InstanceStatus.NOT_STARTED
        ):
            instance = self._store.get_instance(instance.id, for_update=True)
            previous = instance.timeslots
            if len(previous) != len(new.timeslots):
                continue
            for index in changed:
                timeslot = previous[index]
                if not same_apart_from_roster(timeslot.definition, new.timeslots[index]):
                    continue
                definition = replace(
                    timeslot.definition,
                    permanent_participants=new.timeslots[index].permanent_participants,
                )
                instance = instance.with_timeslot(replace(timeslot, definition=definition))
            instance = self._store.save_instance(instance)
            self._roster.sync(instance, previous)
