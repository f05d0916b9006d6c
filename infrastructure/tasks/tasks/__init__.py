"""Task modules grouped by domain.

Import side effects register Celery tasks once this package is imported.
"""
from . import notifications  # noqa: F401 to register tasks
from . import payment_locks  # noqa: F401

__all__ = ["notifications", "payment_locks"]
