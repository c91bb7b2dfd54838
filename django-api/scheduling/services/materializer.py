"""Instance materializer: (template, date) -> concrete session instance."""

import datetime
import logging
from uuid import uuid4

from scheduling.domain import SessionInstance, SessionTemplate, Timeslot
from scheduling.services.roster import RosterSynchronizer
from scheduling.stores.interfaces import SessionStore

logger = logging.getLogger(__name__)


class InstanceMaterializer:
    """Creates the instance of a template on a date, at most once."""

    def __init__(self, store: SessionStore, roster: RosterSynchronizer) -> None:
        self._store = store
        self._roster = roster

    def materialize(
        self, template: SessionTemplate, instance_date: datetime.datetime
    ) -> tuple[SessionInstance, bool]:
        """Return the (template, date) instance and whether this call created it.

        An existing instance is returned untouched. A new one copies the
        template's details, gives every timeslot a fresh id and starts its
        counters at the size of the permanent roster.
        """
        existing = self._store.get_instance_at_date(template.id, instance_date)
        if existing is not None:
            logger.info(
                "Instance of template %s on %s already exists (%s)",
                template.id,
                instance_date.isoformat(),
                existing.id,
            )
            return existing, False

        instance, created = self._store.get_or_create_instance(
            template, instance_date, build_timeslots(template)
        )
        if not created:
            return instance, False

        inserted = self._roster.insert_permanent_participants(instance)
        logger.info(
            "Materialized instance %s of template %s on %s (%d permanent participants)",
            instance.id,
            template.id,
            instance_date.isoformat(),
            inserted,
        )
        return instance, True


def build_timeslots(template: SessionTemplate) -> tuple[Timeslot, ...]:
    return tuple(
        Timeslot(
            id=str(uuid4()),
            definition=definition,
            num_participants=len(definition.permanent_participants),
            num_waitlisted=0,
        )
        for definition in template.timeslots
    )
