"""Celery beat schedule configuration.

Keeping the structure close to the Celery docs makes copying snippets
straightforward for new periodic tasks.
"""
from __future__ import annotations

from core.config import settings

CELERY_BEAT_SCHEDULE = {
    # Lapsed reservations flip active -> expired so their amounts free up
    # once the grace window passes.
    "payment-locks-sweep": {
        "task": "payment_locks.sweep_expired",
        "schedule": float(settings.payment_lock.sweep_interval_seconds),
        "options": {"queue": "high"},
    },
}
