import json

import httpx
import pytest

from core.settings import HttpRetry, PushSettings
from infrastructure.external.notifications.celery_notifier import CeleryPushNotifier
from infrastructure.external.notifications.fcm_client import FcmPushClient, PushDeliveryError


def _client(handler, **overrides) -> FcmPushClient:
    settings = PushSettings(
        fcm_server_key="server-key",
        retry=HttpRetry(max=2, base_backoff=0.0),
        **overrides,
    )
    client = FcmPushClient(settings)
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=client.base_url,
    )
    return client


@pytest.mark.asyncio
async def test_fcm_send_posts_notification():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": 1})

    async with _client(handler) as client:
        response = await client.send("tok", "Store: Payment Received!", "paid", image_url="https://img/x.png")

    assert response.is_success
    assert seen[0].url.path == "/fcm/send"
    assert seen[0].headers["Authorization"] == "key=server-key"
    body = json.loads(seen[0].content)
    assert body["to"] == "tok"
    assert body["notification"]["image"] == "https://img/x.png"


@pytest.mark.asyncio
async def test_fcm_send_retries_transient_errors():
    statuses = iter([503, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses), json={})

    async with _client(handler) as client:
        response = await client.send("tok", "t", "b")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_fcm_send_does_not_retry_rejections():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401, json={"error": "InvalidRegistration"})

    async with _client(handler) as client:
        with pytest.raises(PushDeliveryError) as exc_info:
            await client.send("tok", "t", "b")

    assert exc_info.value.status_code == 401
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_fcm_requires_server_key():
    client = FcmPushClient(PushSettings(fcm_server_key=None))
    with pytest.raises(PushDeliveryError):
        await client.send("tok", "t", "b")
    await client.close()


class _RecordingDispatcher:
    def __init__(self):
        self.calls = []

    def enqueue(self, task_name, *, args=None, kwargs=None, queue=None):
        self.calls.append((task_name, kwargs, queue))
        return "task-1"


@pytest.mark.asyncio
async def test_celery_notifier_enqueues_push_task():
    dispatcher = _RecordingDispatcher()
    notifier = CeleryPushNotifier(dispatcher)

    await notifier.notify("FF1", "title", "message", image_url=None, token="tok")

    task_name, kwargs, queue = dispatcher.calls[0]
    assert task_name == "notifications.send_push"
    assert queue == "notifications"
    assert kwargs["buyer_id"] == "FF1"
    assert kwargs["token"] == "tok"
