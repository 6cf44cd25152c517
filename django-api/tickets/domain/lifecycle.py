"""Ticket lifecycle rules.

``status`` moves only along ALLOWED_TRANSITIONS; CANCELLED is terminal.
``checkin_status`` is orthogonal and may only flip while CONFIRMED.
"""

from tickets.domain.errors import InvalidTransitionError
from tickets.domain.value_objects import CheckinStatus, TicketStatus

ALLOWED_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.PENDING: frozenset({TicketStatus.CONFIRMED, TicketStatus.CANCELLED}),
    TicketStatus.CONFIRMED: frozenset({TicketStatus.CANCELLED}),
    TicketStatus.CANCELLED: frozenset(),
}


def initial_status(is_paid: bool) -> TicketStatus:
    return TicketStatus.PENDING if is_paid else TicketStatus.CONFIRMED


def capacity_counted_statuses(is_paid: bool) -> frozenset[TicketStatus]:
    """Statuses that occupy a seat.

    Free tickets are confirmed on admission, so only CONFIRMED counts. Paid
    tickets hold their seat while PENDING.
    """
    if is_paid:
        return frozenset({TicketStatus.PENDING, TicketStatus.CONFIRMED})
    return frozenset({TicketStatus.CONFIRMED})


def ensure_transition(current: TicketStatus, target: TicketStatus) -> bool:
    """Validate a status change.

    Returns False when ``target`` equals ``current`` (nothing to do), True
    when the change is allowed.

    Raises:
        InvalidTransitionError: If the change is not allowed.
    """
    if current is target:
        return False
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
    return True


def ensure_can_check_in(status: TicketStatus, checkin_status: CheckinStatus) -> bool:
    """Validate a check-in.

    Returns False when the ticket is already checked in (idempotent no-op).

    Raises:
        InvalidTransitionError: If the ticket is not CONFIRMED.
    """
    if status is not TicketStatus.CONFIRMED:
        raise InvalidTransitionError(
            status.value,
            CheckinStatus.CHECKED_IN.value,
            reason="Ticket is not confirmed (unpaid, pending or cancelled)",
        )
    return checkin_status is CheckinStatus.NOT_CHECKED_IN
