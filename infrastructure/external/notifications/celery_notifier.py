"""
Notifier adapter: hand push delivery to the Celery notification task.
"""
from __future__ import annotations

from typing import Optional

from application.ports.notifier import Notifier
from core.logging_config import get_logger
from infrastructure.tasks.utils.dispatcher import TaskDispatcher


logger = get_logger(__name__)

SEND_PUSH_TASK = "notifications.send_push"


class CeleryPushNotifier(Notifier):
    def __init__(self, dispatcher: Optional[TaskDispatcher] = None) -> None:
        self._dispatcher = dispatcher or TaskDispatcher()

    async def notify(
        self,
        buyer_id: str,
        title: str,
        message: str,
        *,
        image_url: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None:
        task_id = self._dispatcher.enqueue(
            SEND_PUSH_TASK,
            kwargs={
                "buyer_id": buyer_id,
                "token": token,
                "title": title,
                "message": message,
                "image_url": image_url,
            },
            queue="notifications",
        )
        logger.info("push_enqueued", buyer_id=buyer_id, task_id=task_id)
