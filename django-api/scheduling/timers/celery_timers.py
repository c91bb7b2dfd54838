"""Celery-backed TaskScheduler.

Handles are Celery task ids, generated up front so the caller can persist
them in the same transaction that arms the task. Dispatch waits for that
transaction to commit, so a task never runs against rows it cannot see yet.
"""

import datetime
import logging
from functools import partial
from typing import Any
from uuid import uuid4

from django.db import transaction

from config.celery import app
from scheduling.timers.interfaces import ScheduledTask, TaskScheduler

logger = logging.getLogger(__name__)


class CeleryTaskScheduler(TaskScheduler):
    """Arms tasks through ``send_task`` with an ``eta``."""

    def schedule_at(
        self,
        when: datetime.datetime,
        task: ScheduledTask,
        payload: dict[str, Any],
    ) -> str:
        handle = str(uuid4())
        transaction.on_commit(
            partial(
                app.send_task,
                task.value,
                kwargs=payload,
                eta=when,
                task_id=handle,
            )
        )
        logger.debug("Armed %s at %s (%s)", task.value, when.isoformat(), handle)
        return handle

    def cancel(self, handle: str) -> None:
        app.control.revoke(handle)
        logger.debug("Revoked task %s", handle)
