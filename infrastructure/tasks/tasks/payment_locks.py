"""
Periodic payment lock maintenance.
"""
from __future__ import annotations

import asyncio
from functools import partial

from celery import shared_task

from application.services.lock_lifecycle_service import LockLifecycleService
from core.config import settings
from core.logging_config import get_logger
from infrastructure.database import build_engine, build_session_factory
from infrastructure.tasks.utils.base_task import BaseTask
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


logger = get_logger(__name__)


async def run_sweep(database_url: str) -> int:
    # asyncio.run 每次都是新的事件循环，引擎不能跨循环复用
    engine = build_engine(database_url)
    try:
        lifecycle = LockLifecycleService(
            partial(SQLAlchemyUnitOfWork, build_session_factory(engine)),
            settings.payment_lock,
        )
        return await lifecycle.sweep_expired()
    finally:
        await engine.dispose()


@shared_task(
    name="payment_locks.sweep_expired",
    bind=True,
    base=BaseTask,
    max_retries=0,
    ignore_result=True,
)
def sweep_expired_payment_locks(self) -> int:
    swept = asyncio.run(run_sweep(settings.database.url))
    logger.info("payment_lock_sweep_task_done", swept=swept)
    return swept
