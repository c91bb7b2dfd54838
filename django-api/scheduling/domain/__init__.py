from scheduling.domain.models import (
    InstanceStatus,
    Location,
    Occupancy,
    Recurrence,
    Schedule,
    SessionDetails,
    SessionInstance,
    SessionParticipant,
    SessionTemplate,
    SessionTemplateDraft,
    Timeslot,
    TimeslotDefinition,
)
from scheduling.domain.value_objects import (
    Capacity,
    InstanceId,
    LocalTime,
    Money,
    ParticipantId,
    TemplateId,
)

__all__ = [
    "InstanceStatus",
    "Location",
    "Occupancy",
    "Recurrence",
    "Schedule",
    "SessionDetails",
    "SessionInstance",
    "SessionParticipant",
    "SessionTemplate",
    "SessionTemplateDraft",
    "Timeslot",
    "TimeslotDefinition",
    "TemplateId",
    "InstanceId",
    "ParticipantId",
    "LocalTime",
    "Money",
    "Capacity",
]
