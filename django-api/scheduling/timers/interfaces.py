"""Delayed-execution facility interface.

A timer arms a one-shot callback at an absolute instant and returns an
opaque handle that can later be used to cancel it.
"""

import datetime
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class ScheduledTask(Enum):
    """Callbacks that can be armed. Values are the registered task names."""

    UPDATE_INSTANCE_STATUS = "scheduling.update_instance_status"
    GENERATE_INSTANCES = "scheduling.generate_instances"
    DEACTIVATE_TEMPLATE = "scheduling.deactivate_template"


class TaskScheduler(ABC):
    """Interface for arming and cancelling delayed tasks."""

    @abstractmethod
    def schedule_at(
        self,
        when: datetime.datetime,
        task: ScheduledTask,
        payload: dict[str, Any],
    ) -> str:
        """Arm ``task`` to run with ``payload`` at or after ``when``; return its handle."""
        ...

    @abstractmethod
    def cancel(self, handle: str) -> None:
        """Cancel a pending task. Unknown or finished handles are ignored."""
        ...
