"""Occupancy bookkeeping and FIFO waitlist promotion for one timeslot.

Counters on an instance timeslot are never incremented in place: after every
participation change they are recomputed from the participation records, in
the same transaction, so they cannot drift from the record set.
"""

import datetime
import logging
from dataclasses import replace

from scheduling.domain import Occupancy, SessionInstance, SessionParticipant
from scheduling.domain.errors import TimeslotNotFoundError
from scheduling.stores.interfaces import SessionStore

logger = logging.getLogger(__name__)


def count_occupancy(store: SessionStore, instance: SessionInstance, timeslot_id: str) -> Occupancy:
    return Occupancy.from_participants(store.list_participants(instance.id, timeslot_id))


def refresh_occupancy(
    store: SessionStore, instance: SessionInstance, timeslot_id: str
) -> SessionInstance:
    """Write the live confirmed/waitlisted counts into the instance timeslot."""
    timeslot = instance.get_timeslot(timeslot_id)
    if timeslot is None:
        raise TimeslotNotFoundError()

    occupancy = count_occupancy(store, instance, timeslot_id)
    if (
        timeslot.num_participants == occupancy.confirmed
        and timeslot.num_waitlisted == occupancy.waitlisted
    ):
        return instance

    updated = replace(
        timeslot,
        num_participants=occupancy.confirmed,
        num_waitlisted=occupancy.waitlisted,
    )
    return store.save_instance(instance.with_timeslot(updated))


def promote_waitlisted(
    store: SessionStore,
    instance: SessionInstance,
    timeslot_id: str,
    now: datetime.datetime,
) -> list[SessionParticipant]:
    """Confirm waitlisted participants, earliest joined first, while seats are free.

    A promoted participant's ``joined_at`` is reset to ``now``.
    """
    timeslot = instance.get_timeslot(timeslot_id)
    if timeslot is None:
        raise TimeslotNotFoundError()

    occupancy = count_occupancy(store, instance, timeslot_id)
    confirmed = occupancy.confirmed
    waitlist = list(occupancy.waitlist)
    promoted: list[SessionParticipant] = []

    while confirmed < timeslot.max_participants and waitlist:
        candidate = waitlist.pop(0)
        participant = store.save_participant(
            replace(candidate, is_waitlisted=False, joined_at=now)
        )
        promoted.append(participant)
        confirmed += 1
        logger.info(
            "Promoted user %s from waitlist of timeslot %s (instance %s)",
            participant.user_id,
            timeslot_id,
            instance.id,
        )

    return promoted
