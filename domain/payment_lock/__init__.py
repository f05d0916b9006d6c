"""Payment lock domain exports."""
from .entity import LockStatus, PaymentLock, quantize_amount, utc_now
from .repository import PaymentLockRepository

__all__ = ["LockStatus", "PaymentLock", "PaymentLockRepository", "quantize_amount", "utc_now"]
