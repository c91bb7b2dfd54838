"""Status transition scheduler.

Each instance gets two armed tasks: one moving it to ``in_progress`` at its
local start time and one moving it to ``completed`` at its local end time.
"""

import logging
from dataclasses import replace

from scheduling.domain import InstanceId, InstanceStatus, SessionInstance
from scheduling.domain.timezones import instant_for_local_time
from scheduling.stores.interfaces import SessionStore
from scheduling.timers.interfaces import ScheduledTask, TaskScheduler

logger = logging.getLogger(__name__)


class StatusTransitionScheduler:
    def __init__(self, store: SessionStore, timers: TaskScheduler) -> None:
        self._store = store
        self._timers = timers

    def arm(self, instance: SessionInstance) -> SessionInstance:
        """Arm the start and end tasks of an instance unless they already are."""
        if instance.start_task_id is not None:
            return instance
        if instance.status is not InstanceStatus.NOT_STARTED:
            return instance

        schedule = instance.details.schedule
        starts_at = instant_for_local_time(
            schedule.start_time, instance.timezone, instance.instance_date
        )
        ends_at = instant_for_local_time(
            schedule.end_time, instance.timezone, instance.instance_date
        )

        start_task_id = self._timers.schedule_at(
            starts_at,
            ScheduledTask.UPDATE_INSTANCE_STATUS,
            {"instance_id": str(instance.id), "status": InstanceStatus.IN_PROGRESS.value},
        )
        end_task_id = self._timers.schedule_at(
            ends_at,
            ScheduledTask.UPDATE_INSTANCE_STATUS,
            {"instance_id": str(instance.id), "status": InstanceStatus.COMPLETED.value},
        )
        logger.info(
            "Armed transitions of instance %s at %s and %s",
            instance.id,
            starts_at.isoformat(),
            ends_at.isoformat(),
        )
        return self._store.save_instance(
            replace(instance, start_task_id=start_task_id, end_task_id=end_task_id)
        )

    def disarm(self, instance: SessionInstance) -> SessionInstance:
        """Revoke pending transition tasks and forget their handles."""
        for handle in (instance.start_task_id, instance.end_task_id):
            if handle:
                self._timers.cancel(handle)
        return replace(instance, start_task_id=None, end_task_id=None)

    def apply(self, instance_id: InstanceId, status: InstanceStatus) -> SessionInstance | None:
        """Move an instance to ``status`` if that is a forward transition.

        Cancelled instances and backwards or repeated transitions are left
        alone, so a late or duplicated task cannot undo a later state.
        """
        with self._store.atomic():
            instance = self._store.get_instance(instance_id, for_update=True)
            if instance is None:
                logger.warning("Status task for missing instance %s ignored", instance_id)
                return None
            if instance.status is InstanceStatus.CANCELLED:
                logger.info(
                    "Instance %s is cancelled; skipping transition to %s",
                    instance_id,
                    status.value,
                )
                return instance
            if not instance.status.can_transition_to(status):
                logger.info(
                    "Instance %s is %s; skipping transition to %s",
                    instance_id,
                    instance.status.value,
                    status.value,
                )
                return instance

            instance = self._store.save_instance(replace(instance, status=status))
            logger.info("Instance %s is now %s", instance_id, status.value)
            return instance
