from django.urls import path

from scheduling.handlers import (
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

urlpatterns = [
    path("session-templates", SessionTemplateListView.as_view(), name="template-list"),
    path(
        "session-templates/<str:template_id>",
        SessionTemplateDetailView.as_view(),
        name="template-detail",
    ),
    path(
        "session-templates/<str:template_id>/generate",
        GenerateInstancesView.as_view(),
        name="template-generate",
    ),
    path("session-instances", SessionInstanceListView.as_view(), name="instance-list"),
    path(
        "session-instances/<str:instance_id>",
        SessionInstanceDetailView.as_view(),
        name="instance-detail",
    ),
    path(
        "session-instances/<str:instance_id>/cancel",
        CancelInstanceView.as_view(),
        name="instance-cancel",
    ),
    path(
        "session-instances/<str:instance_id>/timeslots/<str:timeslot_id>/roster",
        TimeslotRosterView.as_view(),
        name="timeslot-roster",
    ),
    path(
        "session-instances/<str:instance_id>/timeslots/<str:timeslot_id>/participation",
        ParticipationView.as_view(),
        name="timeslot-participation",
    ),
    path(
        "me/session-instances",
        ParticipatingInstanceListView.as_view(),
        name="participating-instance-list",
    ),
]
