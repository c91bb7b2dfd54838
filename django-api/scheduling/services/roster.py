"""Permanent-participant roster synchronizer."""

import datetime
import logging
from collections.abc import Callable
from dataclasses import replace

from django.utils import timezone

from scheduling.domain import SessionInstance, Timeslot
from scheduling.services.waitlist import promote_waitlisted, refresh_occupancy
from scheduling.stores.interfaces import SessionStore

logger = logging.getLogger(__name__)


class RosterSynchronizer:
    """Keeps participation records in line with each timeslot's permanent roster.

    Roster members get confirmed seats without going through the capacity
    check. Their ``joined_at`` is the instance date, so they sort ahead of
    anyone who joined through the regular flow.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime.datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._clock = clock

    def insert_permanent_participants(self, instance: SessionInstance) -> int:
        """Create confirmed records for every roster member of a fresh instance."""
        inserted = 0
        for timeslot in instance.timeslots:
            for user_id in timeslot.permanent_participants:
                if self._enroll(instance, timeslot.id, user_id):
                    inserted += 1
        return inserted

    def sync(
        self, instance: SessionInstance, previous: tuple[Timeslot, ...]
    ) -> SessionInstance:
        """Reconcile records after the roster changed from ``previous`` to ``instance.timeslots``.

        Users added to a roster are enrolled (or lifted off the waitlist), users
        dropped from it lose their record. Freed seats are then offered to the
        waitlist, the same as when a participant leaves.
        """
        old_rosters = {ts.id: set(ts.permanent_participants) for ts in previous}

        for timeslot in instance.timeslots:
            old = old_rosters.get(timeslot.id, set())
            new = set(timeslot.permanent_participants)
            added, removed = new - old, old - new
            if not added and not removed:
                continue

            for user_id in sorted(added):
                self._enroll(instance, timeslot.id, user_id)
            for user_id in sorted(removed):
                participant = self._store.get_participant(instance.id, timeslot.id, user_id)
                if participant is not None:
                    self._store.delete_participant(participant.id)

            promote_waitlisted(self._store, instance, timeslot.id, self._clock())
            instance = refresh_occupancy(self._store, instance, timeslot.id)
            logger.info(
                "Synchronized roster of timeslot %s (instance %s): +%d -%d",
                timeslot.id,
                instance.id,
                len(added),
                len(removed),
            )

        return instance

    def _enroll(self, instance: SessionInstance, timeslot_id: str, user_id: str) -> bool:
        existing = self._store.get_participant(instance.id, timeslot_id, user_id)
        if existing is None:
            self._store.create_participant(
                instance,
                timeslot_id,
                user_id,
                joined_at=instance.instance_date,
                is_waitlisted=False,
            )
            return True
        if existing.is_waitlisted:
            self._store.save_participant(replace(existing, is_waitlisted=False))
            return True
        return False
