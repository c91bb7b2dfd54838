"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from scheduling.domain.errors import DomainError, ErrorCode
from scheduling.handlers.serializers import (
    DateRangeSerializer,
    GenerateInstancesSerializer,
    RosterSerializer,
    SessionInstanceSerializer,
    SessionParticipantSerializer,
    SessionTemplateInputSerializer,
    SessionTemplateSerializer,
    SessionTemplateUpdateSerializer,
)
from scheduling.services import SessionService
from scheduling.services.factory import build_session_service

ERROR_STATUS = {
    ErrorCode.TEMPLATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSTANCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TIMESLOT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TEMPLATE_INACTIVE: status.HTTP_409_CONFLICT,
    ErrorCode.STATUS_NOT_JOINABLE: status.HTTP_409_CONFLICT,
    ErrorCode.TIMESLOT_FULL: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError) -> Response:
    """Map a domain error to its HTTP response. Unlisted codes are validation errors."""
    return Response(
        {"code": error.code.value, "message": error.message},
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def invalid_input_response(error: ValueError) -> Response:
    return Response(
        {"code": "INVALID_INPUT", "message": str(error)},
        status=status.HTTP_400_BAD_REQUEST,
    )


class SessionServiceMixin:
    def get_service(self) -> SessionService:
        return build_session_service()


class SessionTemplateListView(SessionServiceMixin, APIView):
    """Handler for GET/POST /api/session-templates"""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get(self, request: Request) -> Response:
        club_id = request.query_params.get("club_id")
        if not club_id:
            return Response(
                {"code": "INVALID_INPUT", "message": "club_id is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        templates = self.get_service().list_templates(club_id)
        return Response(SessionTemplateSerializer(templates, many=True).data)

    def post(self, request: Request) -> Response:
        serializer = SessionTemplateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            template = self.get_service().create_template(
                serializer.to_draft(created_by=str(request.user.pk))
            )
        except DomainError as e:
            return error_response(e)
        return Response(SessionTemplateSerializer(template).data, status=status.HTTP_201_CREATED)


class SessionTemplateDetailView(SessionServiceMixin, APIView):
    """Handler for GET/PATCH /api/session-templates/{template_id}"""

    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get(self, request: Request, template_id: str) -> Response:
        try:
            template = self.get_service().get_template(template_id)
        except DomainError as e:
            return error_response(e)
        return Response(SessionTemplateSerializer(template).data)

    def patch(self, request: Request, template_id: str) -> Response:
        serializer = SessionTemplateUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            template = self.get_service().update_template(template_id, serializer.to_changes())
        except DomainError as e:
            return error_response(e)
        except ValueError as e:
            return invalid_input_response(e)
        return Response(SessionTemplateSerializer(template).data)


class GenerateInstancesView(SessionServiceMixin, APIView):
    """Handler for POST /api/session-templates/{template_id}/generate"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, template_id: str) -> Response:
        serializer = GenerateInstancesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            instances = self.get_service().generate_instances(
                template_id,
                window_start=serializer.validated_data.get("window_start"),
                window_end=serializer.validated_data.get("window_end"),
            )
        except DomainError as e:
            return error_response(e)
        return Response(
            {"instance_ids": [str(instance.id) for instance in instances]},
            status=status.HTTP_201_CREATED,
        )


class SessionInstanceListView(SessionServiceMixin, APIView):
    """Handler for GET /api/session-instances?club_id=&from_date=&to_date="""

    def get(self, request: Request) -> Response:
        club_id = request.query_params.get("club_id")
        serializer = DateRangeSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        if not club_id:
            return Response(
                {"code": "INVALID_INPUT", "message": "club_id is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        instances = self.get_service().list_instances(
            club_id,
            serializer.validated_data["from_date"],
            serializer.validated_data["to_date"],
        )
        return Response(SessionInstanceSerializer(instances, many=True).data)


class ParticipatingInstanceListView(SessionServiceMixin, APIView):
    """Handler for GET /api/me/session-instances?from_date=&to_date="""

    def get(self, request: Request) -> Response:
        serializer = DateRangeSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        instances = self.get_service().list_participating_instances(
            str(request.user.pk),
            serializer.validated_data["from_date"],
            serializer.validated_data["to_date"],
        )
        return Response(SessionInstanceSerializer(instances, many=True).data)


class SessionInstanceDetailView(SessionServiceMixin, APIView):
    """Handler for GET /api/session-instances/{instance_id}"""

    def get(self, request: Request, instance_id: str) -> Response:
        try:
            instance, participants = self.get_service().get_instance(instance_id)
        except DomainError as e:
            return error_response(e)
        data = SessionInstanceSerializer(instance).data
        data["participants"] = SessionParticipantSerializer(participants, many=True).data
        return Response(data)


class CancelInstanceView(SessionServiceMixin, APIView):
    """Handler for POST /api/session-instances/{instance_id}/cancel"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, instance_id: str) -> Response:
        try:
            instance = self.get_service().cancel_instance(instance_id)
        except DomainError as e:
            return error_response(e)
        return Response(SessionInstanceSerializer(instance).data)


class TimeslotRosterView(SessionServiceMixin, APIView):
    """Handler for PUT /api/session-instances/{instance_id}/timeslots/{timeslot_id}/roster"""

    permission_classes = [IsAdminUser]

    def put(self, request: Request, instance_id: str, timeslot_id: str) -> Response:
        serializer = RosterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            instance = self.get_service().update_instance_roster(
                instance_id,
                timeslot_id,
                serializer.validated_data["permanent_participants"],
            )
        except DomainError as e:
            return error_response(e)
        except ValueError as e:
            return invalid_input_response(e)
        return Response(SessionInstanceSerializer(instance).data)


class ParticipationView(SessionServiceMixin, APIView):
    """Handler for POST/DELETE /api/session-instances/{instance_id}/timeslots/{timeslot_id}/participation"""

    def post(self, request: Request, instance_id: str, timeslot_id: str) -> Response:
        try:
            participant = self.get_service().join(instance_id, timeslot_id, str(request.user.pk))
        except DomainError as e:
            return error_response(e)
        return Response(
            SessionParticipantSerializer(participant).data, status=status.HTTP_201_CREATED
        )

    def delete(self, request: Request, instance_id: str, timeslot_id: str) -> Response:
        try:
            self.get_service().leave(instance_id, timeslot_id, str(request.user.pk))
        except DomainError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
