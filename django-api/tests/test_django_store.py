"""Integration tests for the Django ORM session store."""

import datetime
from dataclasses import replace
from decimal import Decimal

import pytest

from scheduling import models as orm
from scheduling.domain import InstanceStatus, Money, Recurrence
from scheduling.domain.timezones import local_midnight
from scheduling.services.materializer import build_timeslots
from scheduling.stores.django_store import DjangoSessionStore
from tests.factories import build_draft, build_timeslot

NY = "America/New_York"


@pytest.fixture
def django_store() -> DjangoSessionStore:
    return DjangoSessionStore()


@pytest.fixture
def template(django_store):
    fee_slot = replace(build_timeslot(permanent_participants=("u1",)), fee=Money(Decimal("7.5")))
    return django_store.create_template(build_draft(timeslots=(fee_slot,)))


@pytest.mark.django_db
class TestTemplates:
    """Tests for template persistence."""

    def test_create_round_trip(self, django_store, template):
        """A created template reads back with its schedule and timeslots."""
        loaded = django_store.get_template(template.id)

        assert loaded == template
        assert loaded.recurrence is Recurrence.WEEKLY
        assert loaded.is_active is True
        assert loaded.schedule.start_date == datetime.date(2024, 3, 4)
        assert loaded.timeslots[0].fee == Money(Decimal("7.50"))
        assert loaded.timeslots[0].permanent_participants == ("u1",)

    def test_save_updates_handles_and_flag(self, django_store, template):
        """save_template persists the scheduler-owned fields."""
        window_start = local_midnight(datetime.date(2024, 3, 26), "America/New_York")
        saved = django_store.save_template(
            replace(
                template,
                is_active=False,
                next_scheduled_id="h1",
                next_window_start=window_start,
                deactivation_task_id="h2",
            )
        )

        row = orm.SessionTemplate.objects.get(id=template.id.value)
        assert (row.is_active, row.next_scheduled_id, row.deactivation_task_id) == (False, "h1", "h2")
        assert saved.next_window_start == window_start

    def test_list_templates_by_club(self, django_store, template):
        """list_templates filters by club."""
        django_store.create_template(build_draft(club_id="other"))

        assert [t.id for t in django_store.list_templates("club-1")] == [template.id]


@pytest.mark.django_db
class TestInstances:
    """Tests for instance persistence."""

    def test_get_or_create_is_idempotent(self, django_store, template):
        """The second call for the same date returns the first instance."""
        day = local_midnight(datetime.date(2024, 3, 4), NY)

        first, created_first = django_store.get_or_create_instance(template, day, build_timeslots(template))
        second, created_second = django_store.get_or_create_instance(template, day, build_timeslots(template))

        assert (created_first, created_second) == (True, False)
        assert first.id == second.id
        assert orm.SessionInstance.objects.filter(template_id=template.id.value).count() == 1

    def test_instance_copies_template_details(self, django_store, template):
        """The instance carries a frozen copy of the template details."""
        day = local_midnight(datetime.date(2024, 3, 4), NY)
        instance, _ = django_store.get_or_create_instance(template, day, build_timeslots(template))

        loaded = django_store.get_instance(instance.id)
        assert loaded.details == template.details
        assert loaded.status is InstanceStatus.NOT_STARTED
        assert loaded.timeslots[0].num_participants == 1
        assert loaded.timeslots[0].definition == template.timeslots[0]

    def test_save_instance_status_and_counters(self, django_store, template):
        """save_instance persists status, counters and task handles."""
        day = local_midnight(datetime.date(2024, 3, 4), NY)
        instance, _ = django_store.get_or_create_instance(template, day, build_timeslots(template))
        timeslot = replace(instance.timeslots[0], num_participants=3, num_waitlisted=1)

        django_store.save_instance(
            replace(
                instance.with_timeslot(timeslot),
                status=InstanceStatus.IN_PROGRESS,
                start_task_id="s1",
                end_task_id="e1",
            )
        )

        loaded = django_store.get_instance(instance.id, for_update=True)
        assert loaded.status is InstanceStatus.IN_PROGRESS
        assert (loaded.timeslots[0].num_participants, loaded.timeslots[0].num_waitlisted) == (3, 1)
        assert (loaded.start_task_id, loaded.end_task_id) == ("s1", "e1")

    def test_list_template_instances_by_status(self, django_store, template):
        """list_template_instances can filter on status."""
        for day in (datetime.date(2024, 3, 4), datetime.date(2024, 3, 11)):
            django_store.get_or_create_instance(template, local_midnight(day, NY), build_timeslots(template))
        first = django_store.list_template_instances(template.id)[0]
        django_store.save_instance(replace(first, status=InstanceStatus.CANCELLED))

        pending = django_store.list_template_instances(template.id, status=InstanceStatus.NOT_STARTED)

        assert len(pending) == 1
        assert pending[0].id != first.id


@pytest.mark.django_db
class TestParticipants:
    """Tests for participant persistence."""

    @pytest.fixture
    def instance(self, django_store, template):
        day = local_midnight(datetime.date(2024, 3, 4), NY)
        instance, _ = django_store.get_or_create_instance(template, day, build_timeslots(template))
        return instance

    def test_participants_ordered_by_joined_at(self, django_store, instance):
        """list_participants orders by joined_at ascending."""
        timeslot_id = instance.timeslots[0].id
        base = datetime.datetime(2024, 3, 1, tzinfo=datetime.UTC)
        django_store.create_participant(
            instance, timeslot_id, "late", joined_at=base + datetime.timedelta(hours=1), is_waitlisted=True
        )
        django_store.create_participant(instance, timeslot_id, "early", joined_at=base, is_waitlisted=True)

        assert [p.user_id for p in django_store.list_participants(instance.id, timeslot_id)] == [
            "early",
            "late",
        ]

    def test_save_and_delete_participant(self, django_store, instance):
        """Promotion writes and deletions are persisted."""
        timeslot_id = instance.timeslots[0].id
        now = datetime.datetime(2024, 3, 2, tzinfo=datetime.UTC)
        participant = django_store.create_participant(
            instance, timeslot_id, "w", joined_at=now, is_waitlisted=True
        )

        django_store.save_participant(replace(participant, is_waitlisted=False))
        assert django_store.get_participant(instance.id, timeslot_id, "w").is_waitlisted is False

        django_store.delete_participant(participant.id)
        assert django_store.get_participant(instance.id, timeslot_id, "w") is None

    def test_user_participations_in_range(self, django_store, instance):
        """list_user_participations filters by user and instance date."""
        django_store.create_participant(
            instance,
            instance.timeslots[0].id,
            "u9",
            joined_at=instance.instance_date,
            is_waitlisted=False,
        )

        inside = django_store.list_user_participations(
            "u9",
            instance.instance_date - datetime.timedelta(days=1),
            instance.instance_date + datetime.timedelta(days=1),
        )
        outside = django_store.list_user_participations(
            "u9",
            instance.instance_date + datetime.timedelta(days=1),
            instance.instance_date + datetime.timedelta(days=2),
        )

        assert [p.user_id for p in inside] == ["u9"]
        assert outside == []
