"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

import datetime
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from scheduling.domain import (
    InstanceId,
    InstanceStatus,
    ParticipantId,
    SessionInstance,
    SessionParticipant,
    SessionTemplate,
    SessionTemplateDraft,
    TemplateId,
    Timeslot,
)


class SessionStore(ABC):
    """Interface for session template, instance and participant persistence."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping an all-or-nothing transaction."""
        ...

    # Templates

    @abstractmethod
    def create_template(self, draft: SessionTemplateDraft) -> SessionTemplate:
        """Persist a new, active template."""
        ...

    @abstractmethod
    def get_template(
        self, template_id: TemplateId, *, for_update: bool = False
    ) -> SessionTemplate | None:
        """Return a template by ID, or None. ``for_update`` locks the row."""
        ...

    @abstractmethod
    def list_templates(self, club_id: str) -> list[SessionTemplate]:
        """Return a club's templates ordered by created_at descending."""
        ...

    @abstractmethod
    def save_template(self, template: SessionTemplate) -> SessionTemplate:
        """Write back the mutable fields of an existing template."""
        ...

    # Instances

    @abstractmethod
    def get_instance(
        self, instance_id: InstanceId, *, for_update: bool = False
    ) -> SessionInstance | None:
        """Return an instance by ID, or None. ``for_update`` locks the row."""
        ...

    @abstractmethod
    def get_instance_at_date(
        self, template_id: TemplateId, instance_date: datetime.datetime
    ) -> SessionInstance | None:
        """Return the instance of a template on a date, or None."""
        ...

    @abstractmethod
    def get_or_create_instance(
        self,
        template: SessionTemplate,
        instance_date: datetime.datetime,
        timeslots: tuple[Timeslot, ...],
    ) -> tuple[SessionInstance, bool]:
        """Create the (template, date) instance unless it exists.

        Returns the instance and whether it was created by this call.
        """
        ...

    @abstractmethod
    def save_instance(self, instance: SessionInstance) -> SessionInstance:
        """Write back status, timeslots and task handles of an existing instance."""
        ...

    @abstractmethod
    def list_instances(
        self,
        club_id: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
    ) -> list[SessionInstance]:
        """Return a club's instances in a date range, ordered by instance_date."""
        ...

    @abstractmethod
    def list_template_instances(
        self,
        template_id: TemplateId,
        *,
        status: InstanceStatus | None = None,
    ) -> list[SessionInstance]:
        """Return a template's instances ordered by instance_date."""
        ...

    # Participants

    @abstractmethod
    def get_participant(
        self, instance_id: InstanceId, timeslot_id: str, user_id: str
    ) -> SessionParticipant | None:
        """Return the participation record of a user in a timeslot, or None."""
        ...

    @abstractmethod
    def list_participants(
        self, instance_id: InstanceId, timeslot_id: str | None = None
    ) -> list[SessionParticipant]:
        """Return participation records ordered by joined_at ascending."""
        ...

    @abstractmethod
    def list_user_participations(
        self,
        user_id: str,
        from_date: datetime.datetime,
        to_date: datetime.datetime,
    ) -> list[SessionParticipant]:
        """Return a user's participation records in a date range."""
        ...

    @abstractmethod
    def create_participant(
        self,
        instance: SessionInstance,
        timeslot_id: str,
        user_id: str,
        *,
        joined_at: datetime.datetime,
        is_waitlisted: bool,
    ) -> SessionParticipant:
        """Persist a new participation record."""
        ...

    @abstractmethod
    def save_participant(self, participant: SessionParticipant) -> SessionParticipant:
        """Write back joined_at and is_waitlisted of an existing record."""
        ...

    @abstractmethod
    def delete_participant(self, participant_id: ParticipantId) -> None:
        """Delete a participation record."""
        ...
