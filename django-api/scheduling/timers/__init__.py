from scheduling.timers.interfaces import ScheduledTask, TaskScheduler

__all__ = ["ScheduledTask", "TaskScheduler"]
