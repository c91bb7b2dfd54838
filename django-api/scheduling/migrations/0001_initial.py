import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SessionTemplate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("club_id", models.CharField(db_index=True, max_length=64)),
                ("created_by", models.CharField(max_length=64)),
                (
                    "recurrence",
                    models.CharField(
                        choices=[
                            ("one_time", "One time"),
                            ("daily", "Daily"),
                            ("weekly", "Weekly"),
                            ("monthly", "Monthly"),
                        ],
                        max_length=16,
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, max_length=300, null=True)),
                ("session_type", models.CharField(max_length=16)),
                ("visibility", models.CharField(max_length=16)),
                ("payment_type", models.CharField(default="cash", max_length=16)),
                ("location", models.JSONField()),
                ("logo", models.URLField(blank=True, max_length=500, null=True)),
                ("banner", models.URLField(blank=True, max_length=500, null=True)),
                ("grace_time", models.JSONField(blank=True, null=True)),
                ("level_min", models.FloatField(blank=True, null=True)),
                ("level_max", models.FloatField(blank=True, null=True)),
                ("start_time", models.CharField(max_length=5)),
                ("end_time", models.CharField(max_length=5)),
                ("date", models.DateField(blank=True, null=True)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("day_of_week", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("day_of_month", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("timeslots", models.JSONField(default=list)),
                ("is_active", models.BooleanField(default=True)),
                ("next_scheduled_id", models.CharField(blank=True, max_length=64, null=True)),
                ("deactivation_task_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("modified_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["club_id", "-created_at"], name="template_club_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SessionInstance",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("club_id", models.CharField(max_length=64)),
                ("instance_date", models.DateTimeField()),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, max_length=300, null=True)),
                ("session_type", models.CharField(max_length=16)),
                ("visibility", models.CharField(max_length=16)),
                ("payment_type", models.CharField(default="cash", max_length=16)),
                ("location", models.JSONField()),
                ("logo", models.URLField(blank=True, max_length=500, null=True)),
                ("banner", models.URLField(blank=True, max_length=500, null=True)),
                ("grace_time", models.JSONField(blank=True, null=True)),
                ("level_min", models.FloatField(blank=True, null=True)),
                ("level_max", models.FloatField(blank=True, null=True)),
                ("schedule", models.JSONField()),
                ("timeslots", models.JSONField(default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("not_started", "Not started"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="not_started",
                        max_length=16,
                    ),
                ),
                ("start_task_id", models.CharField(blank=True, max_length=64, null=True)),
                ("end_task_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("modified_at", models.DateTimeField(auto_now=True)),
                (
                    "template",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="instances",
                        to="scheduling.sessiontemplate",
                    ),
                ),
            ],
            options={
                "ordering": ["instance_date"],
                "indexes": [
                    models.Index(fields=["club_id", "instance_date"], name="instance_club_date_idx"),
                    models.Index(fields=["instance_date"], name="instance_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("template", "instance_date"),
                        name="unique_instance_per_template_date",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SessionParticipant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("timeslot_id", models.CharField(max_length=64)),
                ("user_id", models.CharField(max_length=64)),
                ("joined_at", models.DateTimeField()),
                ("instance_date", models.DateTimeField()),
                ("is_waitlisted", models.BooleanField(default=False)),
                (
                    "instance",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="scheduling.sessioninstance",
                    ),
                ),
            ],
            options={
                "ordering": ["joined_at"],
                "indexes": [
                    models.Index(
                        fields=["timeslot_id", "is_waitlisted", "joined_at"],
                        name="participant_waitlist_idx",
                    ),
                    models.Index(fields=["user_id", "instance_date"], name="participant_user_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("instance", "timeslot_id", "user_id"),
                        name="unique_participation_per_timeslot",
                    ),
                ],
            },
        ),
    ]
