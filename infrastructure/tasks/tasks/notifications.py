"""
Push delivery for reconciled payments.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from celery import shared_task

from core.logging_config import get_logger
from infrastructure.external.notifications.fcm_client import FcmPushClient, PushDeliveryError
from infrastructure.tasks.utils.base_task import BaseTask


logger = get_logger(__name__)


async def deliver_push(
    token: str,
    title: str,
    message: str,
    image_url: Optional[str] = None,
) -> int:
    async with FcmPushClient() as client:
        response = await client.send(token, title, message, image_url=image_url)
    return response.status_code


@shared_task(
    name="notifications.send_push",
    bind=True,
    base=BaseTask,
    max_retries=3,
    default_retry_delay=30,
)
def send_push(
    self,
    buyer_id: str,
    token: Optional[str],
    title: str,
    message: str,
    image_url: Optional[str] = None,
):
    if not token:
        logger.info("push_skipped_no_token", buyer_id=buyer_id)
        return {"sent": False}
    try:
        status_code = asyncio.run(deliver_push(token, title, message, image_url))
    except PushDeliveryError as exc:
        logger.warning("push_delivery_failed", buyer_id=buyer_id, error=str(exc))
        # 4xx 属于令牌失效等永久错误，不重试
        if exc.status_code is not None and 400 <= exc.status_code < 500 and exc.status_code != 429:
            return {"sent": False, "status_code": exc.status_code}
        raise self.retry(exc=exc)
    logger.info("push_delivered", buyer_id=buyer_id, status_code=status_code)
    return {"sent": True, "status_code": status_code}
