from decimal import Decimal

import pytest

from infrastructure.tasks import celery_app  # noqa: F401 binds shared tasks to the app
from infrastructure.tasks.config.beat import CELERY_BEAT_SCHEDULE
from infrastructure.tasks.tasks import notifications as notification_tasks
from infrastructure.tasks.tasks.payment_locks import run_sweep
from infrastructure.external.notifications.fcm_client import PushDeliveryError


@pytest.mark.asyncio
async def test_run_sweep_expires_overdue_locks(lifecycle, tmp_path):
    # FakeClock 停在过去，真实时钟下这把锁早已过期
    lock = await lifecycle.start_lock("FF1", 1, "Diamonds", Decimal("12.00"))

    swept = await run_sweep(f"sqlite+aiosqlite:///{tmp_path / 'checkout.db'}")

    assert swept == 1
    view = await lifecycle.poll(lock.id)
    assert view.status == "expired"


def test_sweep_is_scheduled():
    entry = CELERY_BEAT_SCHEDULE["payment-locks-sweep"]
    assert entry["task"] == "payment_locks.sweep_expired"


def test_send_push_skips_without_token():
    result = notification_tasks.send_push.apply(
        kwargs={"buyer_id": "FF1", "token": None, "title": "t", "message": "m"}
    ).get()
    assert result == {"sent": False}


def test_send_push_delivers(monkeypatch):
    sent = []

    async def fake_deliver(token, title, message, image_url=None):
        sent.append((token, title, message, image_url))
        return 200

    monkeypatch.setattr(notification_tasks, "deliver_push", fake_deliver)

    result = notification_tasks.send_push.apply(
        kwargs={"buyer_id": "FF1", "token": "tok", "title": "t", "message": "m"}
    ).get()

    assert result == {"sent": True, "status_code": 200}
    assert sent == [("tok", "t", "m", None)]


def test_send_push_gives_up_on_invalid_token(monkeypatch):
    async def fake_deliver(token, title, message, image_url=None):
        raise PushDeliveryError("FCM rejected the message", 400)

    monkeypatch.setattr(notification_tasks, "deliver_push", fake_deliver)

    result = notification_tasks.send_push.apply(
        kwargs={"buyer_id": "FF1", "token": "stale", "title": "t", "message": "m"}
    ).get()

    assert result == {"sent": False, "status_code": 400}
