"""
Push notifier port. Delivery is fire-and-forget from the caller's view.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):

    async def notify(
        self,
        buyer_id: str,
        title: str,
        message: str,
        *,
        image_url: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None: ...
