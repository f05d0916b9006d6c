"""
Base confirmation parser implementing shared concerns: amount normalization,
rejection and logging. Concrete channels subclass and implement ``parse``.
"""
from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, NoReturn, Optional

from application.dtos.payment_locks import ParsedConfirmation
from application.ports.confirmation_parser import ConfirmationParser
from core.logging_config import get_logger
from domain.common.exceptions import ConfirmationParseException
from domain.payment_lock.entity import quantize_amount


logger = get_logger(__name__)


class BaseConfirmationParser(ConfirmationParser):
    channel: str = "base"

    @abstractmethod
    def parse(self, raw_payload: str) -> ParsedConfirmation:
        """Return the parsed amount or reject the payload."""

    # Helpers
    def _reject(self, reason: str) -> NoReturn:
        raise ConfirmationParseException(reason, channel=self.channel)

    def _confirmation(self, amount: Any, provider_ref: Optional[str]) -> ParsedConfirmation:
        try:
            value = quantize_amount(amount)
        except (InvalidOperation, TypeError, ValueError):
            self._reject(f"Unreadable amount: {amount!r}")
        if value <= Decimal("0"):
            self._reject(f"Non-positive amount: {value}")
        parsed = ParsedConfirmation(amount=value, provider_ref=provider_ref)
        self._log("confirmation_parsed", amount=str(parsed.amount), provider_ref=provider_ref)
        return parsed

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            channel=self.channel,
            **kwargs,
        )
