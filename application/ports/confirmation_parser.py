"""
Confirmation parser port (application/ports).

One parser per inbound channel; infrastructure provides the implementations
and the composition root wires them into ReconciliationService.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from application.dtos.payment_locks import ParsedConfirmation


@runtime_checkable
class ConfirmationParser(Protocol):
    """Turn a raw confirmation payload into an amount and provider reference.

    Implementations raise ConfirmationParseException when the payload does
    not describe a completed payment.
    """

    channel: str

    def parse(self, raw_payload: str) -> ParsedConfirmation: ...
