"""Revoke pending delayed tasks when templates or instances are deleted."""

import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from scheduling.models import SessionInstance, SessionTemplate
from scheduling.timers.celery_timers import CeleryTaskScheduler

logger = logging.getLogger(__name__)


def _revoke(*handles: str | None) -> None:
    timers = CeleryTaskScheduler()
    for handle in handles:
        if handle:
            timers.cancel(handle)


@receiver(post_delete, sender=SessionTemplate)
def revoke_template_tasks(sender, instance: SessionTemplate, **kwargs) -> None:
    _revoke(instance.next_scheduled_id, instance.deactivation_task_id)
    logger.info("Revoked pending tasks of deleted template %s", instance.pk)


@receiver(post_delete, sender=SessionInstance)
def revoke_instance_tasks(sender, instance: SessionInstance, **kwargs) -> None:
    _revoke(instance.start_task_id, instance.end_task_id)
