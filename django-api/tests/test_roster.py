"""Unit tests for the permanent-participant roster synchronizer."""

import pytest

from scheduling.domain import InstanceStatus
from scheduling.domain.errors import StatusNotJoinableError, TimeslotNotFoundError
from tests.factories import build_one_time_draft, build_timeslot


@pytest.fixture
def instance(service, store):
    template = service.create_template(
        build_one_time_draft(timeslots=(build_timeslot(max_participants=2, max_waitlist=2),))
    )
    (instance,) = store.list_template_instances(template.id)
    return instance


def set_roster(service, instance, roster):
    return service.update_instance_roster(str(instance.id), instance.timeslots[0].id, roster)


class TestRosterSync:
    """Tests for roster reconciliation on an instance timeslot."""

    def test_round_trip_leaves_no_residue(self, service, store, instance):
        """Adding then removing U leaves no record or count for U."""
        timeslot_id = instance.timeslots[0].id
        service.join(str(instance.id), timeslot_id, "other")

        set_roster(service, instance, ["u"])
        service.join(str(instance.id), timeslot_id, "late")
        service.leave(str(instance.id), timeslot_id, "other")
        updated = set_roster(service, instance, [])

        assert store.get_participant(instance.id, timeslot_id, "u") is None
        records = store.list_participants(instance.id, timeslot_id)
        assert [p.user_id for p in records] == ["late"]
        assert updated.timeslots[0].num_participants == 1
        assert updated.timeslots[0].num_waitlisted == 0

    def test_added_member_bypasses_capacity(self, service, store, instance):
        """Roster members get a seat even when the timeslot is full."""
        timeslot_id = instance.timeslots[0].id
        service.join(str(instance.id), timeslot_id, "a")
        service.join(str(instance.id), timeslot_id, "b")

        updated = set_roster(service, instance, ["vip"])

        vip = store.get_participant(instance.id, timeslot_id, "vip")
        assert vip.is_waitlisted is False
        assert updated.timeslots[0].num_participants == 3

    def test_waitlisted_member_is_confirmed(self, service, store, instance):
        """A waitlisted user added to the roster is confirmed."""
        timeslot_id = instance.timeslots[0].id
        for user_id in ("a", "b", "w"):
            service.join(str(instance.id), timeslot_id, user_id)

        updated = set_roster(service, instance, ["w"])

        assert store.get_participant(instance.id, timeslot_id, "w").is_waitlisted is False
        assert (updated.timeslots[0].num_participants, updated.timeslots[0].num_waitlisted) == (3, 0)

    def test_removal_promotes_waitlist(self, service, store, instance):
        """Dropping a roster member frees their seat for the waitlist."""
        timeslot_id = instance.timeslots[0].id
        set_roster(service, instance, ["vip"])
        service.join(str(instance.id), timeslot_id, "a")
        service.join(str(instance.id), timeslot_id, "w")

        set_roster(service, instance, [])

        assert store.get_participant(instance.id, timeslot_id, "w").is_waitlisted is False

    def test_roster_stored_on_instance(self, service, instance):
        """The instance timeslot carries the new roster."""
        updated = set_roster(service, instance, ["x", "y"])
        assert updated.timeslots[0].permanent_participants == ("x", "y")

    def test_roster_above_capacity_rejected(self, service, instance):
        """A roster larger than the timeslot raises ValueError."""
        with pytest.raises(ValueError):
            set_roster(service, instance, ["a", "b", "c"])

    def test_unknown_timeslot(self, service, instance):
        """Editing a timeslot the instance does not have raises."""
        with pytest.raises(TimeslotNotFoundError):
            service.update_instance_roster(str(instance.id), "missing", ["a"])

    def test_started_instance_rejected(self, service, instance):
        """Roster edits need a not_started instance."""
        service.apply_status_transition(str(instance.id), InstanceStatus.IN_PROGRESS)

        with pytest.raises(StatusNotJoinableError):
            set_roster(service, instance, ["a"])
