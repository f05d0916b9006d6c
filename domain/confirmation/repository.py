"""Repository abstraction for the payment confirmation journal."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import ConfirmationStatus, PaymentConfirmation


class ConfirmationRepository(ABC):
    """Append-first journal of inbound payment confirmations."""

    @abstractmethod
    async def append(self, confirmation: PaymentConfirmation) -> PaymentConfirmation:
        ...

    @abstractmethod
    async def update(self, confirmation: PaymentConfirmation) -> PaymentConfirmation:
        """Persist parse/outcome fields. A verified row is never overwritten;
        the stored entry is returned instead."""

    @abstractmethod
    async def mark_verified(self, confirmation: PaymentConfirmation) -> bool:
        """unverified -> verified. False means another writer verified it first."""

    @abstractmethod
    async def get_by_id(self, confirmation_id: int) -> Optional[PaymentConfirmation]:
        ...

    @abstractmethod
    async def list(
        self,
        *,
        status: Optional[ConfirmationStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[PaymentConfirmation]:
        ...

    @abstractmethod
    async def count(self, *, status: Optional[ConfirmationStatus] = None) -> int:
        ...
