"""
Confirmation channel and push delivery settings using pydantic-settings v2
with nested env keys.

Kept apart from core.config.Settings so webhook secrets and provider
credentials can be rotated without touching the main application config.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class HttpTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 3.0
    write: float = 3.0
    total: float = 5.0


class HttpRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class RazorpaySettings(BaseModel):
    webhook_secret: Optional[str] = None


class SmsSettings(BaseModel):
    # When set, SMS forwarders must send it in X-Webhook-Secret
    shared_secret: Optional[str] = None


class PushSettings(BaseModel):
    fcm_server_key: Optional[str] = None
    endpoint: str = "https://fcm.googleapis.com"
    timeouts: HttpTimeouts = Field(default_factory=HttpTimeouts)
    retry: HttpRetry = Field(default_factory=HttpRetry)


class PaymentSettings(BaseSettings):
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)
    sms: SmsSettings = Field(default_factory=SmsSettings)
    push: PushSettings = Field(default_factory=PushSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
