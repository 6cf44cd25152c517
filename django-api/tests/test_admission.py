"""Unit tests for AdmissionService.

Run with: pytest tests/test_admission.py -v
"""

import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from events.domain import PricingType
from events.domain.errors import EventNotFoundError
from tests.fakes import (
    FixedCodes,
    InMemoryEventStore,
    InMemoryTicketStore,
    RecordingDispatcher,
    make_event,
)
from tickets.domain import Email, RegistrationRequest, TicketStatus
from tickets.domain.errors import (
    CapacityExceededError,
    DuplicateRegistrationError,
    GenerationCollisionError,
)
from tickets.services.admission_service import AdmissionService
from tickets.services.ticket_codes import TicketCodeGenerator

NOW = datetime(2030, 1, 1, 12, tzinfo=timezone.utc)


def registration(event, email="ana@example.com", **extra) -> RegistrationRequest:
    return RegistrationRequest(
        event_id=str(event.id),
        full_name="Ana Putri",
        email=Email.normalize(email),
        **extra,
    )


def build_service(*events, codes=None, notifier=None, **kwargs):
    tickets = InMemoryTicketStore(now=NOW)
    service = AdmissionService(
        events=InMemoryEventStore(*events),
        tickets=tickets,
        codes=codes or TicketCodeGenerator("https://tickets.test"),
        notifier=notifier or RecordingDispatcher(),
        clock=lambda: NOW,
        **kwargs,
    )
    return service, tickets


class TestAdmit:
    """Tests for AdmissionService.admit"""

    def test_free_event_issues_confirmed_ticket(self):
        event = make_event(capacity=10)
        notifier = RecordingDispatcher()
        service, _ = build_service(event, notifier=notifier)

        ticket = service.admit(registration(event, payment_method="cash"))

        assert ticket.status is TicketStatus.CONFIRMED
        assert ticket.total_price == 0
        assert ticket.paid_at == NOW
        assert ticket.payment_method is None
        assert ticket.qr_url.endswith(f"?code={ticket.ticket_code}")
        assert notifier.sent == [("issued", ticket.ticket_code)]

    def test_paid_event_issues_pending_ticket(self):
        event = make_event(pricing_type=PricingType.PAID, price=150000)
        service, _ = build_service(event, pending_hold=timedelta(minutes=30))

        ticket = service.admit(
            registration(event, payment_method="transfer", payment_reference="TRX-1")
        )

        assert ticket.status is TicketStatus.PENDING
        assert ticket.total_price == 150000
        assert ticket.paid_at is None
        assert ticket.payment_reference == "TRX-1"
        assert ticket.expires_at == NOW + timedelta(minutes=30)

    def test_unknown_event(self):
        service, _ = build_service()
        with pytest.raises(EventNotFoundError):
            service.admit(
                RegistrationRequest(
                    event_id=str(uuid.uuid4()), full_name="Ana", email=Email("a@b.c")
                )
            )

    def test_malformed_event_id_is_not_found(self):
        service, _ = build_service()
        with pytest.raises(EventNotFoundError):
            service.admit(
                RegistrationRequest(event_id="abc", full_name="Ana", email=Email("a@b.c"))
            )

    def test_unpublished_event_is_not_found(self):
        event = make_event(is_published=False)
        service, _ = build_service(event)
        with pytest.raises(EventNotFoundError):
            service.admit(registration(event))

    def test_duplicate_email_is_rejected_case_insensitively(self):
        event = make_event()
        service, tickets = build_service(event)
        service.admit(registration(event, email="ana@example.com"))

        with pytest.raises(DuplicateRegistrationError):
            service.admit(registration(event, email="  ANA@Example.com"))
        assert len(tickets.tickets) == 1

    def test_cancelled_ticket_does_not_block_new_registration(self):
        event = make_event()
        service, tickets = build_service(event)
        first = service.admit(registration(event))
        tickets.update(first.id, {"status": TicketStatus.CANCELLED})

        assert service.admit(registration(event)).status is TicketStatus.CONFIRMED

    def test_sold_out(self):
        event = make_event(capacity=1)
        service, _ = build_service(event)
        service.admit(registration(event, email="one@example.com"))

        with pytest.raises(CapacityExceededError):
            service.admit(registration(event, email="two@example.com"))

    def test_zero_capacity_is_sold_out(self):
        event = make_event(capacity=0)
        service, _ = build_service(event)
        with pytest.raises(CapacityExceededError):
            service.admit(registration(event))

    def test_pending_tickets_hold_seats_on_paid_events(self):
        event = make_event(capacity=1, pricing_type=PricingType.PAID, price=10)
        service, _ = build_service(event)
        service.admit(registration(event, email="one@example.com"))

        with pytest.raises(CapacityExceededError):
            service.admit(registration(event, email="two@example.com"))

    def test_code_collision_is_retried(self):
        event = make_event()
        service, tickets = build_service(
            event, codes=FixedCodes("EVT-AAAAAA-AAAA", "EVT-BBBBBB-BBBB")
        )
        tickets.taken_codes.add("EVT-AAAAAA-AAAA")

        assert service.admit(registration(event)).ticket_code == "EVT-BBBBBB-BBBB"

    def test_code_generation_gives_up_after_max_attempts(self):
        event = make_event()
        service, tickets = build_service(
            event, codes=FixedCodes(*["EVT-AAAAAA-AAAA"] * 3), max_code_attempts=3
        )
        tickets.taken_codes.add("EVT-AAAAAA-AAAA")

        with pytest.raises(GenerationCollisionError):
            service.admit(registration(event))
        assert tickets.tickets == {}

    def test_notification_failure_does_not_fail_admission(self):
        event = make_event()
        service, tickets = build_service(event, notifier=RecordingDispatcher(fail=True))

        ticket = service.admit(registration(event))

        assert tickets.get(ticket.id) == ticket


class TestConcurrentAdmission:
    """Parallel registrations never oversell or double-book."""

    def test_capacity_is_never_exceeded(self):
        event = make_event(capacity=5)
        service, tickets = build_service(event)

        def attempt(n):
            try:
                return service.admit(registration(event, email=f"user{n}@example.com"))
            except CapacityExceededError:
                return None

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(40)))

        assert sum(1 for r in results if r is not None) == 5
        assert tickets.count_tickets(event.id, {TicketStatus.CONFIRMED}) == 5

    def test_same_email_admitted_once(self):
        event = make_event()
        service, tickets = build_service(event)

        def attempt(_):
            try:
                return service.admit(registration(event, email="same@example.com"))
            except DuplicateRegistrationError:
                return None

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(20)))

        assert sum(1 for r in results if r is not None) == 1
        assert len(tickets.tickets) == 1
