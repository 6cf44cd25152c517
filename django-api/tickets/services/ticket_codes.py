"""Ticket code generation.

Codes look like ``EVT-7KQ2MX-HP4D``. They are drawn from an alphabet without
0/O/1/I so they can be read aloud and typed by hand. Anyone holding a code can
resolve it, so codes come from ``secrets`` and are never sequential.
"""

import re
import secrets
from urllib.parse import quote

from tickets.domain import IssuedCode

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
PREFIX = "EVT"
QR_PATH = "/api/tickets/qr"

_SCANNED_CODE = re.compile(r"EVT-[A-Z0-9]{4,}-[A-Z0-9]{3,}", re.IGNORECASE)


def random_block(length: int, alphabet: str = ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def qr_url_for(code: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}{QR_PATH}?code={quote(code, safe='')}"


def extract_ticket_code(text: str | None) -> str:
    """Pull a ticket code out of scanner input.

    Scanners may send the bare code, the QR lookup URL, or text around it.
    Input without a recognizable code is returned trimmed and upper-cased.
    """
    cleaned = (text or "").strip().upper()
    match = _SCANNED_CODE.search(cleaned)
    return match.group(0).upper() if match else cleaned


class TicketCodeGenerator:
    """Produces ticket codes and their QR lookup URLs."""

    def __init__(self, base_url: str, head_length: int = 6, tail_length: int = 4) -> None:
        self._base_url = base_url
        self._head_length = head_length
        self._tail_length = tail_length

    def generate(self) -> IssuedCode:
        code = (
            f"{PREFIX}-{random_block(self._head_length)}-{random_block(self._tail_length)}"
        )
        return IssuedCode(code=code, qr_url=qr_url_for(code, self._base_url))
