"""Notification domain exports."""
from .entity import Notification
from .repository import NotificationRepository

__all__ = ["Notification", "NotificationRepository"]
