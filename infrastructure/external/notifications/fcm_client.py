"""
FCM 推送客户端

基于 httpx + tenacity：
- 超时控制
- 429/5xx 与网络错误自动重试（指数退避）
- 请求/响应结构化日志（不记录令牌）
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.logging_config import get_logger
from core.settings import PushSettings, payment_settings


logger = get_logger(__name__)

RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


@dataclass
class PushResponse:
    """FCM 响应封装"""
    status_code: int
    data: Any
    elapsed_ms: float

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class PushDeliveryError(Exception):
    """推送失败"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def __str__(self):
        if self.status_code:
            return f"{self.message} | Status: {self.status_code}"
        return self.message


class RetryablePushError(PushDeliveryError):
    """可重试的推送错误"""

    def __init__(self, message: str, status_code: Optional[int], retry_after: Optional[float] = None):
        super().__init__(message, status_code)
        self.retry_after = retry_after


class FcmPushClient:
    """Firebase Cloud Messaging HTTP 客户端（legacy /fcm/send 接口）"""

    def __init__(self, settings: Optional[PushSettings] = None):
        self._settings = settings or payment_settings.push
        self.base_url = self._settings.endpoint.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        t = self._settings.timeouts
        return httpx.Timeout(connect=t.connect, read=t.read, write=t.write, timeout=t.total)

    @property
    def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, base_url=self.base_url)
        return self._client

    async def close(self):
        """关闭HTTP客户端"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _headers(self) -> Dict[str, str]:
        if not self._settings.fcm_server_key:
            raise PushDeliveryError("PUSH__FCM_SERVER_KEY not configured")
        return {
            "Content-Type": "application/json",
            "Authorization": f"key={self._settings.fcm_server_key}",
        }

    @staticmethod
    def build_message(
        token: str,
        title: str,
        body: str,
        image_url: Optional[str] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        notification: Dict[str, Any] = {"title": title, "body": body}
        if image_url:
            notification["image"] = image_url
        message: Dict[str, Any] = {"to": token, "notification": notification}
        if data:
            message["data"] = data
        return message

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        *,
        image_url: Optional[str] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> PushResponse:
        payload = self.build_message(token, title, body, image_url, data)
        headers = self._headers()

        async def _send_once() -> PushResponse:
            start = datetime.now()
            response = await self.client.post("/fcm/send", json=payload, headers=headers)
            elapsed = (datetime.now() - start).total_seconds() * 1000
            try:
                response_data = response.json()
            except ValueError:
                response_data = None
            result = PushResponse(status_code=response.status_code, data=response_data, elapsed_ms=elapsed)
            logger.debug("fcm_response", status_code=result.status_code, elapsed_ms=round(elapsed, 2))

            if result.status_code in RETRY_STATUS_CODES:
                retry_after: Optional[float] = None
                header = response.headers.get("retry-after")
                try:
                    retry_after = float(header) if header else None
                except (TypeError, ValueError):
                    retry_after = None
                if retry_after:
                    await asyncio.sleep(retry_after)
                raise RetryablePushError(
                    f"Transient FCM error with status {result.status_code}",
                    result.status_code,
                    retry_after,
                )
            if not result.is_success:
                raise PushDeliveryError("FCM rejected the message", result.status_code)
            return result

        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._settings.retry.max + 1),
            wait=wait_exponential(
                multiplier=self._settings.retry.base_backoff,
                min=0.1,
                max=2.0,
            ),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError, RetryablePushError)),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await _send_once()
        except httpx.TimeoutException as exc:
            raise PushDeliveryError(f"FCM request timeout after {self._settings.timeouts.total}s") from exc
        except httpx.NetworkError as exc:
            raise PushDeliveryError(f"Network error: {exc}") from exc
