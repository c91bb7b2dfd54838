from scheduling.handlers.views import (
    CancelInstanceView,
    GenerateInstancesView,
    ParticipatingInstanceListView,
    ParticipationView,
    SessionInstanceDetailView,
    SessionInstanceListView,
    SessionTemplateDetailView,
    SessionTemplateListView,
    TimeslotRosterView,
)

__all__ = [
    "CancelInstanceView",
    "GenerateInstancesView",
    "ParticipatingInstanceListView",
    "ParticipationView",
    "SessionInstanceDetailView",
    "SessionInstanceListView",
    "SessionTemplateDetailView",
    "SessionTemplateListView",
    "TimeslotRosterView",
]
