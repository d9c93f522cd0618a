"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.conf import settings
from django.core.cache import cache
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from registrations.domain import Registration
from registrations.domain.errors import DomainError, ErrorCode
from registrations.handlers.serializers import (
    OrganizerStatsSerializer,
    ReconciliationResultSerializer,
    RegisterInputSerializer,
    RegistrationSerializer,
    RegistrationStatsSerializer,
    RejectInputSerializer,
    StatusFilterSerializer,
)
from registrations.wiring import build_registration_service

ERROR_STATUS = {
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_EVENT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REGISTRATION_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_INACTIVE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.REGISTRATION_CLOSED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TRANSITION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DUPLICATE_ACTIVE_REGISTRATION: status.HTTP_409_CONFLICT,
    ErrorCode.EVENT_FULL: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT_STALE: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
}


def _generation_key(event_id: str) -> str:
    return f"registrations:events:{event_id}:approved_count_generation"


def approved_count_cache_key(event_id: str) -> str:
    """Key of the cached approved count for the event's current generation.

    Read the key before loading the count: a count loaded before an
    invalidation is then stored under a generation no reader asks for.
    """
    generation = cache.get(_generation_key(event_id), 0)
    return f"registrations:events:{event_id}:approved_count:{generation}"


def invalidate_approved_count(event_id: str) -> None:
    key = _generation_key(event_id)
    try:
        cache.incr(key)
    except ValueError:
        cache.set(key, 1, timeout=None)


def error_response(error: DomainError) -> Response:
    return Response(
        {"code": error.code.value, "message": error.message},
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def actor_id(request: Request) -> str:
    return str(request.user.pk)


def _registration_response(registration: Registration, http_status: int = status.HTTP_200_OK) -> Response:
    invalidate_approved_count(str(registration.event_id))
    return Response(RegistrationSerializer(registration).data, status=http_status)


class RegistrationListView(APIView):
    """Handler for POST /api/registrations"""

    def post(self, request: Request) -> Response:
        payload = RegisterInputSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            registration = build_registration_service().register(
                payload.validated_data["event_id"],
                actor_id(request),
                payload.validated_data["note"],
            )
        except DomainError as e:
            return error_response(e)
        return _registration_response(registration, status.HTTP_201_CREATED)


class MyRegistrationsView(APIView):
    """Handler for GET /api/registrations/mine"""

    def get(self, request: Request) -> Response:
        query = StatusFilterSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        registrations = build_registration_service().list_for_participant(
            actor_id(request), query.validated_status()
        )
        return Response(RegistrationSerializer(registrations, many=True).data)


class RegistrationDetailView(APIView):
    """Handler for GET and DELETE /api/registrations/{registration_id}"""

    def get(self, request: Request, registration_id: str) -> Response:
        try:
            registration = build_registration_service().get_registration(registration_id, actor_id(request))
        except DomainError as e:
            return error_response(e)
        return Response(RegistrationSerializer(registration).data)

    def delete(self, request: Request, registration_id: str) -> Response:
        try:
            build_registration_service().withdraw(registration_id, actor_id(request))
        except DomainError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ApproveRegistrationView(APIView):
    """Handler for POST /api/registrations/{registration_id}/approve"""

    def post(self, request: Request, registration_id: str) -> Response:
        try:
            registration = build_registration_service().approve(registration_id, actor_id(request))
        except DomainError as e:
            return error_response(e)
        return _registration_response(registration)


class RejectRegistrationView(APIView):
    """Handler for POST /api/registrations/{registration_id}/reject"""

    def post(self, request: Request, registration_id: str) -> Response:
        payload = RejectInputSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            registration = build_registration_service().reject(
                registration_id, actor_id(request), payload.validated_data["reason"]
            )
        except DomainError as e:
            return error_response(e)
        return _registration_response(registration)


class CancelRegistrationView(APIView):
    """Handler for POST /api/registrations/{registration_id}/cancel"""

    def post(self, request: Request, registration_id: str) -> Response:
        try:
            registration = build_registration_service().cancel(registration_id, actor_id(request))
        except DomainError as e:
            return error_response(e)
        return _registration_response(registration)


class ApprovedCountView(APIView):
    """Handler for GET /api/events/{event_id}/approved-count"""

    def get(self, request: Request, event_id: str) -> Response:
        key = approved_count_cache_key(event_id)
        count = cache.get(key)
        if count is None:
            try:
                count = build_registration_service().get_approved_count(event_id)
            except DomainError as e:
                return error_response(e)
            cache.set(key, count, timeout=settings.APPROVED_COUNT_CACHE_TIMEOUT)
        return Response({"event_id": event_id, "approved_count": count})


class EventRegistrationsView(APIView):
    """Handler for GET /api/events/{event_id}/registrations"""

    def get(self, request: Request, event_id: str) -> Response:
        query = StatusFilterSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            registrations = build_registration_service().list_for_event(
                event_id, actor_id(request), query.validated_status()
            )
        except DomainError as e:
            return error_response(e)
        return Response(RegistrationSerializer(registrations, many=True).data)


class EventRegistrationStatsView(APIView):
    """Handler for GET /api/events/{event_id}/registrations/stats"""

    def get(self, request: Request, event_id: str) -> Response:
        try:
            stats = build_registration_service().registration_stats(event_id, actor_id(request))
        except DomainError as e:
            return error_response(e)
        return Response(RegistrationStatsSerializer(stats).data)


class OrganizerStatsView(APIView):
    """Handler for GET /api/registrations/organizer/stats"""

    def get(self, request: Request) -> Response:
        stats = build_registration_service().organizer_stats(actor_id(request))
        return Response(OrganizerStatsSerializer(stats).data)


class GlobalStatsView(APIView):
    """Handler for GET /api/registrations/stats"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        stats = build_registration_service().global_stats()
        return Response(RegistrationStatsSerializer(stats).data)


class ReconcileEventView(APIView):
    """Handler for POST /api/events/{event_id}/reconcile"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, event_id: str) -> Response:
        try:
            count = build_registration_service().reconcile_event(event_id)
        except DomainError as e:
            return error_response(e)
        invalidate_approved_count(event_id)
        return Response({"event_id": event_id, "approved_count": count})


class ReconcileAllView(APIView):
    """Handler for POST /api/events/reconcile"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request) -> Response:
        results = build_registration_service().reconcile_all()
        for result in results:
            invalidate_approved_count(str(result.event_id))
        return Response(ReconciliationResultSerializer(results, many=True).data)
