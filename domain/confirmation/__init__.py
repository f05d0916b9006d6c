"""Payment confirmation journal exports."""
from .entity import ConfirmationChannel, ConfirmationStatus, PaymentConfirmation
from .repository import ConfirmationRepository

__all__ = [
    "ConfirmationChannel",
    "ConfirmationStatus",
    "PaymentConfirmation",
    "ConfirmationRepository",
]
