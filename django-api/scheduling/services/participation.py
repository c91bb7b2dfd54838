"""Join and leave operations against one timeslot of one instance."""

import datetime
import logging
from collections.abc import Callable

from django.utils import timezone

from scheduling.domain import InstanceId, InstanceStatus, SessionInstance, SessionParticipant
from scheduling.domain.errors import (
    InstanceNotFoundError,
    StatusNotJoinableError,
    TimeslotFullError,
    TimeslotNotFoundError,
)
from scheduling.services.waitlist import count_occupancy, promote_waitlisted, refresh_occupancy
from scheduling.stores.interfaces import SessionStore

logger = logging.getLogger(__name__)


class ParticipationService:
    """Capacity-checked participation with a FIFO waitlist.

    Every operation runs in one transaction holding the instance row lock, so
    the capacity check and the write cannot interleave with another join.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime.datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._clock = clock

    def join(self, instance_id: InstanceId, timeslot_id: str, user_id: str) -> SessionParticipant:
        """Enroll a user, confirmed if a seat is free, else on the waitlist.

        Joining twice returns the existing record.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
            TimeslotNotFoundError: If the timeslot is not part of the instance.
            StatusNotJoinableError: If the instance is no longer ``not_started``.
            TimeslotFullError: If both the seats and the waitlist are taken.
        """
        with self._store.atomic():
            instance = self._lock_instance(instance_id)

            existing = self._store.get_participant(instance.id, timeslot_id, user_id)
            if existing is not None:
                return existing

            timeslot = instance.get_timeslot(timeslot_id)
            if timeslot is None:
                raise TimeslotNotFoundError()
            if instance.status is not InstanceStatus.NOT_STARTED:
                raise StatusNotJoinableError()

            occupancy = count_occupancy(self._store, instance, timeslot_id)
            if occupancy.confirmed < timeslot.max_participants:
                is_waitlisted = False
            elif occupancy.waitlisted < timeslot.max_waitlist:
                is_waitlisted = True
            else:
                raise TimeslotFullError()

            participant = self._store.create_participant(
                instance,
                timeslot_id,
                user_id,
                joined_at=self._clock(),
                is_waitlisted=is_waitlisted,
            )
            refresh_occupancy(self._store, instance, timeslot_id)
            logger.info(
                "User %s joined timeslot %s of instance %s%s",
                user_id,
                timeslot_id,
                instance.id,
                " (waitlisted)" if is_waitlisted else "",
            )
            return participant

    def leave(self, instance_id: InstanceId, timeslot_id: str, user_id: str) -> None:
        """Remove a user's record and promote from the waitlist.

        Leaving without a record is a no-op.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
            StatusNotJoinableError: If the instance is no longer ``not_started``.
        """
        with self._store.atomic():
            instance = self._lock_instance(instance_id)

            participant = self._store.get_participant(instance.id, timeslot_id, user_id)
            if participant is None:
                return
            if instance.status is not InstanceStatus.NOT_STARTED:
                raise StatusNotJoinableError()

            self._store.delete_participant(participant.id)
            promote_waitlisted(self._store, instance, timeslot_id, self._clock())
            refresh_occupancy(self._store, instance, timeslot_id)
            logger.info(
                "User %s left timeslot %s of instance %s", user_id, timeslot_id, instance.id
            )

    def _lock_instance(self, instance_id: InstanceId) -> SessionInstance:
        instance = self._store.get_instance(instance_id, for_update=True)
        if instance is None:
            raise InstanceNotFoundError()
        return instance
