"""Integration tests for the session scheduling HTTP API."""

import datetime
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from scheduling import models as orm


@pytest.fixture
def admin_user():
    return get_user_model().objects.create_user(username="admin", password="pw", is_staff=True)


@pytest.fixture
def member():
    return get_user_model().objects.create_user(username="member", password="pw")


@pytest.fixture
def admin_client(admin_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(admin_user)
    return client


@pytest.fixture
def member_client(member) -> APIClient:
    client = APIClient()
    client.force_authenticate(member)
    return client


def template_payload(**overrides):
    start = timezone.now().date() + datetime.timedelta(days=1)
    payload = {
        "club_id": "club-1",
        "name": "Thursday social",
        "session_type": "social",
        "visibility": "public",
        "location": {
            "name": "Court 1",
            "place_id": "place-1",
            "address": "1 Main St",
            "timezone": "America/New_York",
        },
        "recurrence": "weekly",
        "start_time": "18:00",
        "end_time": "20:00",
        "start_date": start.isoformat(),
        "end_date": (start + datetime.timedelta(days=56)).isoformat(),
        "timeslots": [
            {
                "type": "duration",
                "duration": 120,
                "fee_type": "split",
                "fee": "10.00",
                "max_participants": 1,
                "max_waitlist": 1,
            }
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def created(admin_client):
    response = admin_client.post("/api/session-templates", template_payload(), format="json")
    assert response.status_code == 201
    return response.json()


def first_instance():
    return orm.SessionInstance.objects.order_by("instance_date").first()


@pytest.mark.django_db
class TestCreateTemplate:
    """Tests for POST /api/session-templates"""

    def test_creates_template_and_first_batch(self, created):
        """Returns the template and materializes four weekly instances."""
        assert created["recurrence"] == "weekly"
        assert created["is_active"] is True
        assert created["next_scheduled_id"]
        assert created["timeslots"][0]["fee"] == "10.00"
        assert orm.SessionInstance.objects.count() == 4

    def test_requires_admin(self, member_client):
        """Non-staff users cannot create templates."""
        response = member_client.post("/api/session-templates", template_payload(), format="json")
        assert response.status_code == 403

    def test_missing_end_date(self, admin_client):
        """A recurring template without end_date maps to 400 with a code."""
        payload = template_payload()
        del payload["end_date"]

        response = admin_client.post("/api/session-templates", payload, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "RECURRENCE_BOUNDARY_REQUIRED"

    def test_off_grid_time_rejected(self, admin_client):
        """Times must be on the 15 minute grid."""
        response = admin_client.post(
            "/api/session-templates", template_payload(start_time="18:10"), format="json"
        )
        assert response.status_code == 400
        assert "start_time" in response.json()

    def test_start_date_too_far_rejected(self, admin_client):
        """Start dates more than 30 days out are rejected."""
        start = timezone.now().date() + datetime.timedelta(days=45)
        response = admin_client.post(
            "/api/session-templates",
            template_payload(
                start_date=start.isoformat(),
                end_date=(start + datetime.timedelta(days=7)).isoformat(),
            ),
            format="json",
        )
        assert response.status_code == 400
        assert "start_date" in response.json()

    def test_unknown_timezone_rejected(self, admin_client):
        """Unknown timezones are rejected."""
        payload = template_payload()
        payload["location"]["timezone"] = "Nowhere/Special"

        response = admin_client.post("/api/session-templates", payload, format="json")

        assert response.status_code == 400


@pytest.mark.django_db
class TestTemplateDetail:
    """Tests for GET/PATCH /api/session-templates/{id}"""

    def test_get_template(self, member_client, created):
        """Returns template details."""
        response = member_client.get(f"/api/session-templates/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Thursday social"

    def test_get_template_not_found(self, member_client):
        """Unknown ids return 404."""
        response = member_client.get(f"/api/session-templates/{uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"code": "TEMPLATE_NOT_FOUND", "message": "Session template not found"}

    def test_get_template_invalid_id_format(self, member_client):
        """Malformed ids return 400."""
        response = member_client.get("/api/session-templates/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"

    def test_patch_template(self, admin_client, created):
        """PATCH renames the template."""
        response = admin_client.patch(
            f"/api/session-templates/{created['id']}", {"name": "Renamed"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_list_templates(self, member_client, created):
        """Templates are listed by club."""
        response = member_client.get("/api/session-templates", {"club_id": "club-1"})
        assert [t["id"] for t in response.json()] == [created["id"]]


@pytest.mark.django_db
class TestGenerate:
    """Tests for POST /api/session-templates/{id}/generate"""

    def test_generate_is_idempotent(self, admin_client, created):
        """Regenerating returns the existing instances."""
        response = admin_client.post(f"/api/session-templates/{created['id']}/generate", {}, format="json")
        assert response.status_code == 201
        assert len(response.json()["instance_ids"]) == 4
        assert orm.SessionInstance.objects.count() == 4

    def test_generate_inactive_template(self, admin_client, created):
        """An inactive template returns 409."""
        orm.SessionTemplate.objects.filter(id=created["id"]).update(is_active=False)

        response = admin_client.post(f"/api/session-templates/{created['id']}/generate", {}, format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "TEMPLATE_INACTIVE"


@pytest.mark.django_db
class TestParticipation:
    """Tests for POST/DELETE .../timeslots/{timeslotId}/participation"""

    def url(self, instance):
        return f"/api/session-instances/{instance.id}/timeslots/{instance.timeslots[0]['id']}/participation"

    def test_join_then_full(self, created, member_client, admin_client):
        """First join confirms, second waitlists, third is 409."""
        instance = first_instance()
        other = APIClient()
        other.force_authenticate(get_user_model().objects.create_user(username="other", password="pw"))

        assert member_client.post(self.url(instance)).json()["is_waitlisted"] is False
        assert admin_client.post(self.url(instance)).json()["is_waitlisted"] is True
        response = other.post(self.url(instance))

        assert response.status_code == 409
        assert response.json()["code"] == "TIMESLOT_FULL"

    def test_leave_promotes(self, created, member_client, admin_client, admin_user):
        """Leaving promotes the waitlisted user."""
        instance = first_instance()
        member_client.post(self.url(instance))
        admin_client.post(self.url(instance))

        response = member_client.delete(self.url(instance))

        assert response.status_code == 204
        participant = orm.SessionParticipant.objects.get(user_id=str(admin_user.pk))
        assert participant.is_waitlisted is False

    def test_unknown_timeslot(self, created, member_client):
        """An unknown timeslot returns 404."""
        instance = first_instance()
        response = member_client.post(f"/api/session-instances/{instance.id}/timeslots/nope/participation")
        assert response.status_code == 404
        assert response.json()["code"] == "TIMESLOT_NOT_FOUND"

    def test_requires_authentication(self, created):
        """Anonymous users cannot join."""
        response = APIClient().post(self.url(first_instance()))
        assert response.status_code == 403

    def test_my_instances(self, created, member_client):
        """Joined instances are listed for the current user."""
        instance = first_instance()
        member_client.post(self.url(instance))

        response = member_client.get(
            "/api/me/session-instances",
            {
                "from_date": (timezone.now() - datetime.timedelta(days=1)).isoformat(),
                "to_date": (timezone.now() + datetime.timedelta(days=60)).isoformat(),
            },
        )

        assert [i["id"] for i in response.json()] == [str(instance.id)]


@pytest.mark.django_db
class TestInstanceAdmin:
    """Tests for instance detail, cancel and roster endpoints."""

    def test_get_instance_with_participants(self, created, member_client, member):
        """Instance detail includes participants."""
        instance = first_instance()
        member_client.post(
            f"/api/session-instances/{instance.id}/timeslots/{instance.timeslots[0]['id']}/participation"
        )

        response = member_client.get(f"/api/session-instances/{instance.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "not_started"
        assert body["timeslots"][0]["num_participants"] == 1
        assert [p["user_id"] for p in body["participants"]] == [str(member.pk)]

    @patch("config.celery.app.control.revoke")
    def test_cancel_instance(self, mock_revoke, created, admin_client):
        """Cancelling returns the cancelled instance and revokes its tasks."""
        instance = first_instance()

        response = admin_client.post(f"/api/session-instances/{instance.id}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert mock_revoke.call_count == 2

    @patch("config.celery.app.control.revoke")
    def test_join_cancelled_instance(self, mock_revoke, created, admin_client, member_client):
        """Joining a cancelled instance returns 409."""
        instance = first_instance()
        admin_client.post(f"/api/session-instances/{instance.id}/cancel")

        response = member_client.post(
            f"/api/session-instances/{instance.id}/timeslots/{instance.timeslots[0]['id']}/participation"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "STATUS_NOT_JOINABLE"

    def test_set_roster(self, created, admin_client):
        """PUT roster enrolls the listed users."""
        instance = first_instance()

        response = admin_client.put(
            f"/api/session-instances/{instance.id}/timeslots/{instance.timeslots[0]['id']}/roster",
            {"permanent_participants": ["vip"]},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["timeslots"][0]["permanent_participants"] == ["vip"]
        assert orm.SessionParticipant.objects.filter(user_id="vip").count() == 1

    def test_roster_above_capacity(self, created, admin_client):
        """A roster larger than the timeslot is rejected."""
        instance = first_instance()

        response = admin_client.put(
            f"/api/session-instances/{instance.id}/timeslots/{instance.timeslots[0]['id']}/roster",
            {"permanent_participants": ["a", "b"]},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INPUT"
