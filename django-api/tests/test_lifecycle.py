"""Unit tests for TicketLifecycleService.

Run with: pytest tests/test_lifecycle.py -v
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from events.domain import PricingType
from events.domain.errors import InvalidEventIdError
from events.services.event_service import EventService
from tests.fakes import (
    InMemoryEventStore,
    InMemoryTicketStore,
    RecordingDispatcher,
    make_event,
)
from tickets.domain import CheckinStatus, Email, RegistrationRequest, TicketQuery, TicketStatus
from tickets.domain.errors import (
    InvalidTransitionError,
    RequestValidationError,
    TicketNotFoundError,
)
from tickets.services.admission_service import AdmissionService
from tickets.services.lifecycle_service import TicketLifecycleService
from tickets.services.ticket_codes import TicketCodeGenerator

NOW = datetime(2030, 1, 1, 12, tzinfo=timezone.utc)


class Env:
    def __init__(self, *events):
        self.events = InMemoryEventStore(*events)
        self.tickets = InMemoryTicketStore(now=NOW)
        self.notifier = RecordingDispatcher()
        self.admission = AdmissionService(
            events=self.events,
            tickets=self.tickets,
            codes=TicketCodeGenerator("https://tickets.test"),
            notifier=self.notifier,
            pending_hold=timedelta(minutes=30),
            clock=lambda: NOW,
        )
        self.service = TicketLifecycleService(
            tickets=self.tickets,
            events=EventService(self.events),
            notifier=self.notifier,
            clock=lambda: NOW,
        )

    def admit(self, event, email="ana@example.com"):
        return self.admission.admit(
            RegistrationRequest(
                event_id=str(event.id), full_name="Ana Putri", email=Email.normalize(email)
            )
        )


@pytest.fixture
def free_event():
    return make_event(capacity=2)


@pytest.fixture
def paid_event():
    return make_event(capacity=1, pricing_type=PricingType.PAID, price=50000)


class TestUpdateTicket:
    def test_confirm_pending_stamps_paid_at(self, paid_event):
        env = Env(paid_event)
        ticket = env.admit(paid_event)

        updated = env.service.update_ticket(str(ticket.id), {"status": TicketStatus.CONFIRMED})

        assert updated.status is TicketStatus.CONFIRMED
        assert updated.paid_at == NOW

    def test_explicit_paid_at_is_kept(self, paid_event):
        env = Env(paid_event)
        ticket = env.admit(paid_event)
        paid_at = NOW - timedelta(days=1)

        updated = env.service.update_ticket(
            str(ticket.id), {"status": "CONFIRMED", "paid_at": paid_at}
        )

        assert updated.paid_at == paid_at

    def test_cancelled_is_terminal(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)
        env.service.update_ticket(str(ticket.id), {"status": TicketStatus.CANCELLED})

        with pytest.raises(InvalidTransitionError):
            env.service.update_ticket(str(ticket.id), {"status": TicketStatus.CONFIRMED})

    def test_unknown_fields_are_ignored(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)

        updated = env.service.update_ticket(
            str(ticket.id), {"ticket_code": "EVT-HACKED-0000", "payment_method": "cash"}
        )

        assert updated.ticket_code == ticket.ticket_code
        assert updated.payment_method == "cash"

    def test_resend_schedules_notification(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)

        env.service.update_ticket(str(ticket.id), {}, resend=True)

        assert env.notifier.sent[-1] == ("resent", ticket.ticket_code)

    def test_unknown_ticket(self):
        env = Env()
        with pytest.raises(TicketNotFoundError):
            env.service.update_ticket(str(uuid.uuid4()), {"status": "CANCELLED"})

    def test_malformed_id_is_not_found(self):
        with pytest.raises(TicketNotFoundError):
            Env().service.get_ticket("42")

    def test_cancelling_frees_capacity(self, paid_event):
        env = Env(paid_event)
        ticket = env.admit(paid_event, email="one@example.com")
        env.service.update_ticket(str(ticket.id), {"status": TicketStatus.CANCELLED})

        assert env.admit(paid_event, email="two@example.com").status is TicketStatus.PENDING


class TestCheckIn:
    def test_check_in_confirmed_ticket(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)

        result = env.service.check_in(ticket.qr_url, admin_id=7)

        assert not result.already_checked_in
        assert result.ticket.checkin_status is CheckinStatus.CHECKED_IN
        assert result.ticket.checked_in_at == NOW
        assert env.tickets.checkin_logs == [(ticket.id, 7)]

    def test_second_scan_is_idempotent(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)
        env.service.check_in(ticket.ticket_code)

        result = env.service.check_in(ticket.ticket_code.lower())

        assert result.already_checked_in
        assert len(env.tickets.checkin_logs) == 1

    def test_pending_ticket_cannot_check_in(self, paid_event):
        env = Env(paid_event)
        ticket = env.admit(paid_event)

        with pytest.raises(InvalidTransitionError):
            env.service.check_in(ticket.ticket_code)

    def test_unknown_code(self):
        with pytest.raises(TicketNotFoundError):
            Env().service.check_in("EVT-ZZZZZZ-ZZZZ")

    def test_missing_code(self):
        with pytest.raises(RequestValidationError):
            Env().service.check_in("   ")

    def test_audit_log_failure_does_not_undo_check_in(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)
        env.tickets.fail_checkin_log = True

        result = env.service.check_in(ticket.ticket_code)

        assert result.ticket.is_checked_in


class TestDeleteAndList:
    def test_soft_delete_hides_ticket_and_frees_email(self, free_event):
        env = Env(free_event)
        ticket = env.admit(free_event)

        deleted = env.service.delete_ticket(str(ticket.id))

        assert deleted.deleted_at == NOW
        with pytest.raises(TicketNotFoundError):
            env.service.get_ticket(str(ticket.id))
        assert env.admit(free_event).id != ticket.id

    def test_list_filters_and_titles(self, free_event):
        env = Env(free_event)
        env.admit(free_event, email="ana@example.com")
        env.admit(free_event, email="budi@example.com")

        page = env.service.list_tickets(TicketQuery(q="budi", event_id=str(free_event.id)))

        assert page.total == 1
        assert page.items[0].email == "budi@example.com"
        assert page.event_titles == {free_event.id: "Campus Expo"}

    def test_list_rejects_malformed_event_filter(self):
        with pytest.raises(InvalidEventIdError):
            Env().service.list_tickets(TicketQuery(event_id="nope"))


class TestCancelExpired:
    def test_expired_pending_tickets_are_cancelled(self, paid_event):
        env = Env(paid_event)
        ticket = env.admit(paid_event)

        assert env.service.cancel_expired(now=NOW + timedelta(minutes=10)) == []
        assert env.service.cancel_expired(now=NOW + timedelta(minutes=31)) == [ticket.id]
        assert env.tickets.get(ticket.id).status is TicketStatus.CANCELLED

    def test_dry_run_changes_nothing(self, paid_event):
        env = Env(paid_event)
        ticket = env.admit(paid_event)

        assert env.service.cancel_expired(now=NOW + timedelta(hours=1), dry_run=True) == [
            ticket.id
        ]
        assert env.tickets.get(ticket.id).status is TicketStatus.PENDING
