"""Push notification adapters."""
from .fcm_client import FcmPushClient, PushDeliveryError

__all__ = ["FcmPushClient", "PushDeliveryError"]
