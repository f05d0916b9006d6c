"""Common base task for Celery jobs"""
from __future__ import annotations

from celery import Task
from structlog.contextvars import bound_contextvars

from core.logging_config import get_logger

logger = get_logger(__name__)


class BaseTask(Task):
    """Structured start/success/failure/retry logging with the task id bound."""

    def __call__(self, *args, **kwargs):
        with bound_contextvars(task_id=self.request.id, task_name=self.name):
            return super().__call__(*args, **kwargs)

    def on_failure(self, exc, task_id, args, kwargs, einfo):  # type: ignore[override]
        logger.error(
            "celery_task_failure",
            task_id=task_id,
            task_name=self.name,
            exc=str(exc),
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc, task_id, args, kwargs, einfo):  # type: ignore[override]
        logger.warning(
            "celery_task_retry",
            task_id=task_id,
            task_name=self.name,
            retries=self.request.retries,
            exc=str(exc),
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)

    def on_success(self, retval, task_id, args, kwargs):  # type: ignore[override]
        logger.info(
            "celery_task_success",
            task_id=task_id,
            task_name=self.name,
        )
        super().on_success(retval, task_id, args, kwargs)
