"""Celery tasks armed by the scheduling services.

Task bodies let errors propagate to Celery's failure channel; nothing here
retries or re-arms itself on failure.
"""

import datetime

from config.celery import app
from scheduling.domain import InstanceStatus
from scheduling.services.factory import build_session_service
from scheduling.timers.interfaces import ScheduledTask


@app.task(name=ScheduledTask.UPDATE_INSTANCE_STATUS.value)
def update_instance_status(instance_id: str, status: str):
    build_session_service().apply_status_transition(instance_id, InstanceStatus(status))


@app.task(bind=True, name=ScheduledTask.GENERATE_INSTANCES.value)
def generate_instances(self, template_id: str, window_start: str):
    instances = build_session_service().run_scheduled_batch(
        template_id,
        datetime.datetime.fromisoformat(window_start),
        handle=self.request.id,
    )
    return [str(instance.id) for instance in instances]


@app.task(name=ScheduledTask.DEACTIVATE_TEMPLATE.value)
def deactivate_template(template_id: str):
    build_session_service().deactivate_template(template_id)
