"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models


class SessionTemplate(models.Model):
    """Persistence model for recurring session definitions."""

    RECURRENCE_CHOICES = [
        ("one_time", "One time"),
        ("daily", "Daily"),
        ("weekly", "Weekly"),
        ("monthly", "Monthly"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    club_id = models.CharField(max_length=64, db_index=True)
    created_by = models.CharField(max_length=64)
    recurrence = models.CharField(max_length=16, choices=RECURRENCE_CHOICES)

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=300, blank=True, null=True)
    session_type = models.CharField(max_length=16)
    visibility = models.CharField(max_length=16)
    payment_type = models.CharField(max_length=16, default="cash")
    location = models.JSONField()
    logo = models.URLField(max_length=500, blank=True, null=True)
    banner = models.URLField(max_length=500, blank=True, null=True)
    grace_time = models.JSONField(blank=True, null=True)
    level_min = models.FloatField(blank=True, null=True)
    level_max = models.FloatField(blank=True, null=True)

    start_time = models.CharField(max_length=5)
    end_time = models.CharField(max_length=5)
    date = models.DateField(blank=True, null=True)
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)
    day_of_week = models.PositiveSmallIntegerField(blank=True, null=True)
    day_of_month = models.PositiveSmallIntegerField(blank=True, null=True)

    timeslots = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)
    next_scheduled_id = models.CharField(max_length=64, blank=True, null=True)
    next_window_start = models.DateTimeField(blank=True, null=True)
    deactivation_task_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["club_id", "-created_at"], name="template_club_created_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class SessionInstance(models.Model):
    """Persistence model for one dated occurrence of a template."""

    STATUS_CHOICES = [
        ("not_started", "Not started"),
        ("in_progress", "In progress"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    template = models.ForeignKey(
        SessionTemplate, on_delete=models.CASCADE, related_name="instances"
    )
    club_id = models.CharField(max_length=64)
    instance_date = models.DateTimeField()

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=300, blank=True, null=True)
    session_type = models.CharField(max_length=16)
    visibility = models.CharField(max_length=16)
    payment_type = models.CharField(max_length=16, default="cash")
    location = models.JSONField()
    logo = models.URLField(max_length=500, blank=True, null=True)
    banner = models.URLField(max_length=500, blank=True, null=True)
    grace_time = models.JSONField(blank=True, null=True)
    level_min = models.FloatField(blank=True, null=True)
    level_max = models.FloatField(blank=True, null=True)
    schedule = models.JSONField()

    timeslots = models.JSONField(default=list)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="not_started")
    start_task_id = models.CharField(max_length=64, blank=True, null=True)
    end_task_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["instance_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["template", "instance_date"],
                name="unique_instance_per_template_date",
            ),
        ]
        indexes = [
            models.Index(fields=["club_id", "instance_date"], name="instance_club_date_idx"),
            models.Index(fields=["instance_date"], name="instance_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} - {self.instance_date:%Y-%m-%d}"


class SessionParticipant(models.Model):
    """Persistence model for a user's enrollment in an instance timeslot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    instance = models.ForeignKey(
        SessionInstance, on_delete=models.CASCADE, related_name="participants"
    )
    timeslot_id = models.CharField(max_length=64)
    user_id = models.CharField(max_length=64)
    joined_at = models.DateTimeField()
    instance_date = models.DateTimeField()
    is_waitlisted = models.BooleanField(default=False)

    class Meta:
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["instance", "timeslot_id", "user_id"],
                name="unique_participation_per_timeslot",
            ),
        ]
        indexes = [
            models.Index(
                fields=["timeslot_id", "is_waitlisted", "joined_at"],
                name="participant_waitlist_idx",
            ),
            models.Index(fields=["user_id", "instance_date"], name="participant_user_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.timeslot_id}"
