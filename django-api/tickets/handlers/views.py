"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging
from enum import Enum
from typing import TypeVar

from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from events.domain.errors import DomainError
from events.domain.errors import ErrorCode as EventErrorCode
from tickets.domain import CheckinStatus, Email, TicketQuery, TicketStatus
from tickets.domain.errors import ErrorCode, RateLimitedError, RequestValidationError
from tickets.handlers import dependencies
from tickets.handlers.serializers import (
    CheckinSerializer,
    RegistrationSerializer,
    TicketPatchSerializer,
    TicketSerializer,
)
from tickets.qr import render_qr_png
from tickets.services.rate_limiter import consume_or_raise

logger = logging.getLogger(__name__)

HONEYPOT_FIELDS = ("hp", "honeypot", "website", "url")

STATUS_BY_CODE = {
    EventErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    EventErrorCode.INVALID_EVENT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TICKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_REGISTRATION: status.HTTP_409_CONFLICT,
    ErrorCode.SOLD_OUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.CODE_GENERATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

E = TypeVar("E", bound=Enum)


def error_response(exc: DomainError, headers: dict[str, str] | None = None) -> Response:
    body = {"code": exc.code.value, "message": exc.message}
    headers = dict(headers or {})
    if isinstance(exc, RequestValidationError):
        body["fields"] = exc.fields
    if isinstance(exc, RateLimitedError):
        limiter = dependencies.get_rate_limiter()
        headers.update(exc.decision.headers())
        headers["Retry-After"] = str(exc.decision.retry_after(limiter.now()))
    http_status = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
    if http_status >= 500:
        logger.error("Request failed: %s", exc)
    return Response({"error": body}, status=http_status, headers=headers)


def client_ip(request: Request) -> str:
    """Address used for per-IP throttling.

    ``X-Forwarded-For`` is only read when ``TICKETS_TRUSTED_PROXY_COUNT``
    proxies sit in front of the app; the client is then that many entries
    from the right, since everything further left is client-supplied.
    """
    remote_addr = request.META.get("REMOTE_ADDR") or "unknown"
    proxies = settings.TICKETS_TRUSTED_PROXY_COUNT
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if not proxies or not forwarded:
        return remote_addr
    addrs = [addr.strip() for addr in forwarded.split(",") if addr.strip()]
    if not addrs:
        return remote_addr
    return addrs[-min(proxies, len(addrs))]


def parse_enum(enum_cls: type[E], value: str | None, field: str) -> E | None:
    if not value:
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        raise RequestValidationError({field: [f"Unknown value '{value}'."]}) from None


def parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


class TicketCollectionView(APIView):
    """Handler for /api/tickets (public POST, admin GET/PATCH/DELETE)."""

    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def get_permissions(self):
        if self.request.method == "POST":
            return [AllowAny()]
        return [IsAdminUser()]

    def get(self, request: Request) -> Response:
        params = request.query_params
        try:
            query = TicketQuery(
                page=parse_int(params.get("page"), 1),
                per_page=parse_int(params.get("perPage"), 20),
                event_id=params.get("event_id") or None,
                status=parse_enum(TicketStatus, params.get("status"), "status"),
                checkin_status=parse_enum(
                    CheckinStatus, params.get("checkin_status"), "checkin_status"
                ),
                q=params.get("q", ""),
                locale=params.get("locale") or None,
                fallback=params.get("fallback") or None,
            )
            page = dependencies.get_lifecycle_service().list_tickets(query)
        except DomainError as exc:
            return error_response(exc)

        data = TicketSerializer(
            page.items, many=True, context={"event_titles": page.event_titles}
        ).data
        return Response(
            {
                "page": page.page,
                "perPage": page.per_page,
                "total": page.total,
                "totalPages": page.total_pages,
                "data": data,
            }
        )

    def post(self, request: Request) -> Response:
        data = request.data
        if any(data.get(name) for name in HONEYPOT_FIELDS):
            logger.info("Honeypot field filled, dropping registration from %s", client_ip(request))
            return Response({"message": "OK"})

        email = Email.normalize(str(data.get("email") or ""))
        try:
            decision = dependencies.get_registration_throttle().check(
                client_ip(request), email.value
            )
        except RateLimitedError as exc:
            return error_response(exc)
        headers = decision.headers()

        serializer = RegistrationSerializer(data=data)
        if not serializer.is_valid():
            return error_response(
                RequestValidationError(
                    serializer.errors, message="event_id, full_name, email are required"
                ),
                headers,
            )
        try:
            ticket = dependencies.get_admission_service(request).admit(serializer.to_request())
        except DomainError as exc:
            return error_response(exc, headers)

        return Response(
            TicketSerializer(ticket).data, status=status.HTTP_201_CREATED, headers=headers
        )

    def patch(self, request: Request) -> Response:
        ticket_id = request.query_params.get("id")
        if not ticket_id:
            return missing_id_response()
        return patch_ticket(request, ticket_id)

    def delete(self, request: Request) -> Response:
        ticket_id = request.query_params.get("id")
        if not ticket_id:
            return missing_id_response()
        return delete_ticket(ticket_id)


def missing_id_response() -> Response:
    return error_response(
        RequestValidationError({"id": ["This field is required."]}, "id is required")
    )


def patch_ticket(request: Request, ticket_id: str) -> Response:
    serializer = TicketPatchSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(RequestValidationError(serializer.errors))

    changes = dict(serializer.validated_data)
    resend = changes.pop("action", "") == "resend"
    service = dependencies.get_lifecycle_service()
    try:
        ticket = service.update_ticket(ticket_id, changes, resend=resend)
    except DomainError as exc:
        return error_response(exc)

    titles = {ticket.event_id: service.event_title(ticket)}
    return Response(TicketSerializer(ticket, context={"event_titles": titles}).data)


def delete_ticket(ticket_id: str) -> Response:
    try:
        ticket = dependencies.get_lifecycle_service().delete_ticket(ticket_id)
    except DomainError as exc:
        return error_response(exc)
    return Response({"message": "deleted", "data": TicketSerializer(ticket).data})


class TicketDetailView(APIView):
    """Handler for GET/PATCH/DELETE /api/tickets/{ticket_id}"""

    permission_classes = [IsAdminUser]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def get(self, request: Request, ticket_id: str) -> Response:
        service = dependencies.get_lifecycle_service()
        try:
            ticket = service.get_ticket(ticket_id)
        except DomainError as exc:
            return error_response(exc)
        titles = {
            ticket.event_id: service.event_title(
                ticket, request.query_params.get("locale"), request.query_params.get("fallback")
            )
        }
        return Response(TicketSerializer(ticket, context={"event_titles": titles}).data)

    def patch(self, request: Request, ticket_id: str) -> Response:
        return patch_ticket(request, ticket_id)

    def delete(self, request: Request, ticket_id: str) -> Response:
        return delete_ticket(ticket_id)


class TicketCheckinView(APIView):
    """Handler for POST /api/tickets/checkin"""

    permission_classes = [IsAdminUser]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def post(self, request: Request) -> Response:
        try:
            decision = consume_or_raise(
                dependencies.get_rate_limiter(),
                f"checkin:ip:{client_ip(request)}",
                dependencies.get_limit("checkin"),
                scope="checkin",
            )
        except RateLimitedError as exc:
            return error_response(exc)
        headers = decision.headers()

        serializer = CheckinSerializer(data=request.data)
        serializer.is_valid(raise_exception=False)
        scanned = request.query_params.get("code") or serializer.scanned()

        service = dependencies.get_lifecycle_service()
        try:
            result = service.check_in(scanned, admin_id=request.user.pk)
        except DomainError as exc:
            return error_response(exc, headers)

        ticket = result.ticket
        return Response(
            {
                "message": "ALREADY_CHECKED_IN" if result.already_checked_in else "CHECKED_IN",
                "data": {
                    "ticket": TicketSerializer(ticket).data,
                    "event": {
                        "id": str(ticket.event_id),
                        "title": service.event_title(ticket),
                    },
                },
            },
            headers=headers,
        )


class TicketQRView(APIView):
    """Handler for GET /api/tickets/qr?code=..."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request: Request) -> HttpResponse:
        code = (request.query_params.get("code") or "").strip()
        if not code:
            return error_response(
                RequestValidationError({"code": ["This field is required."]}, "code is required")
            )
        response = HttpResponse(render_qr_png(code), content_type="image/png")
        response["Content-Disposition"] = 'inline; filename="ticket-qr.png"'
        response["Cache-Control"] = "public, max-age=86400"
        return response
