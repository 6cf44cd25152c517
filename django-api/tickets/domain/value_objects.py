"""Domain primitives for tickets."""

from dataclasses import dataclass
from enum import Enum
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class TicketId:
    """Unique identifier for a Ticket."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


class TicketStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class CheckinStatus(str, Enum):
    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    CHECKED_IN = "CHECKED_IN"


ACTIVE_STATUSES = frozenset({TicketStatus.PENDING, TicketStatus.CONFIRMED})


@dataclass(frozen=True)
class Email:
    """Registrant email, trimmed and lower-cased."""

    value: str

    @classmethod
    def normalize(cls, raw: str) -> Self:
        return cls(value=(raw or "").strip().lower())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class IssuedCode:
    """A freshly generated ticket code and the QR lookup URL derived from it."""

    code: str
    qr_url: str
