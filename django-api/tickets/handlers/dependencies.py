"""Builds services with their concrete stores and collaborators."""

from datetime import timedelta
from functools import lru_cache

from django.conf import settings
from django.core.cache import caches
from rest_framework.request import Request

from events.services.event_service import EventService
from events.stores.django_store import DjangoEventStore
from tickets.services.admission_service import AdmissionService
from tickets.services.lifecycle_service import TicketLifecycleService
from tickets.services.notifications import CeleryNotificationDispatcher
from tickets.services.rate_limiter import Limit, RateLimiter, RegistrationThrottle
from tickets.services.ticket_codes import TicketCodeGenerator
from tickets.stores.django_store import DjangoTicketStore


def public_base_url(request: Request | None = None) -> str:
    if settings.TICKETS_PUBLIC_BASE_URL:
        return settings.TICKETS_PUBLIC_BASE_URL.rstrip("/")
    if request is not None:
        return request.build_absolute_uri("/").rstrip("/")
    return "http://localhost:8000"


@lru_cache(maxsize=None)
def get_rate_limiter() -> RateLimiter:
    # Cached so the shared-cache cooldown survives across requests.
    fallback_alias = settings.TICKETS_RATE_LIMIT_FALLBACK_CACHE
    return RateLimiter(
        cache=caches[settings.TICKETS_RATE_LIMIT_CACHE],
        fallback=caches[fallback_alias] if fallback_alias else None,
        cooldown_seconds=settings.TICKETS_RATE_LIMIT_COOLDOWN,
    )


def get_limit(scope: str) -> Limit:
    requests, window_seconds = settings.TICKETS_RATE_LIMITS[scope]
    return Limit(requests=requests, window_seconds=window_seconds)


def get_registration_throttle() -> RegistrationThrottle:
    return RegistrationThrottle(
        get_rate_limiter(), ip_limit=get_limit("ip"), email_limit=get_limit("email")
    )


def get_admission_service(request: Request | None = None) -> AdmissionService:
    hold_minutes = settings.TICKETS_PENDING_HOLD_MINUTES
    return AdmissionService(
        events=DjangoEventStore(),
        tickets=DjangoTicketStore(),
        codes=TicketCodeGenerator(public_base_url(request)),
        notifier=CeleryNotificationDispatcher(),
        max_code_attempts=settings.TICKETS_CODE_MAX_ATTEMPTS,
        pending_hold=timedelta(minutes=hold_minutes) if hold_minutes else None,
    )


def get_lifecycle_service() -> TicketLifecycleService:
    return TicketLifecycleService(
        tickets=DjangoTicketStore(),
        events=EventService(DjangoEventStore()),
        notifier=CeleryNotificationDispatcher(),
    )
