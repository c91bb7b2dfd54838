"""Rolling batch scheduler and template deactivation."""

import datetime
import logging
from dataclasses import replace

from scheduling.domain import SessionTemplate
from scheduling.domain.timezones import local_date, local_midnight
from scheduling.stores.interfaces import SessionStore
from scheduling.timers.interfaces import ScheduledTask, TaskScheduler

logger = logging.getLogger(__name__)


class RollingBatchScheduler:
    """Arms the task that materializes a template's next batch.

    The handle of the newest armed task is stored on the template as
    ``next_scheduled_id``, and the start of the window it will generate as
    ``next_window_start``. A batch task whose own id no longer matches the
    stored handle has been superseded and does nothing when it fires.
    """

    def __init__(self, store: SessionStore, timers: TaskScheduler) -> None:
        self._store = store
        self._timers = timers

    def arm_next_batch(
        self, template: SessionTemplate, batch_dates: list[datetime.datetime]
    ) -> SessionTemplate:
        """Arm the continuation at the latest date of the batch just generated.

        Nothing is armed for one-time templates, empty batches, or when the
        batch already reached the end of the series.
        """
        if not template.recurrence.is_recurring or not batch_dates:
            return template

        latest = max(batch_dates)
        last_day = local_date(latest, template.timezone)
        if last_day >= template.schedule.end_date:
            logger.info("Template %s fully generated through %s", template.id, last_day)
            if template.next_scheduled_id is None:
                return template
            return self._store.save_template(
                replace(template, next_scheduled_id=None, next_window_start=None)
            )

        window_start = local_midnight(last_day + datetime.timedelta(days=1), template.timezone)
        handle = self._timers.schedule_at(
            latest,
            ScheduledTask.GENERATE_INSTANCES,
            {"template_id": str(template.id), "window_start": window_start.isoformat()},
        )
        logger.info(
            "Armed next batch of template %s at %s (%s)",
            template.id,
            latest.isoformat(),
            handle,
        )
        return self._store.save_template(
            replace(template, next_scheduled_id=handle, next_window_start=window_start)
        )

    def skips_pending_window(
        self, template: SessionTemplate, batch_dates: list[datetime.datetime]
    ) -> bool:
        """Whether an on-demand batch must leave the pending continuation armed.

        A batch that starts after the pending window would skip the dates in
        between if it took over the chain.
        """
        if not template.next_scheduled_id or template.next_window_start is None:
            return False
        return bool(batch_dates) and min(batch_dates) > template.next_window_start

    def arm_deactivation(self, template: SessionTemplate) -> SessionTemplate:
        """Arm the one-shot task that deactivates the template on its final date."""
        when = local_midnight(template.schedule.final_date, template.timezone)
        handle = self._timers.schedule_at(
            when,
            ScheduledTask.DEACTIVATE_TEMPLATE,
            {"template_id": str(template.id)},
        )
        logger.info("Armed deactivation of template %s at %s", template.id, when.isoformat())
        return self._store.save_template(replace(template, deactivation_task_id=handle))

    def cancel_pending(self, template: SessionTemplate) -> SessionTemplate:
        if template.next_scheduled_id:
            self._timers.cancel(template.next_scheduled_id)
        return replace(template, next_scheduled_id=None, next_window_start=None)
