"""Infrastructure models package exports."""
from .base import Base, metadata
from .payment_lock import PaymentLockModel
from .confirmation import PaymentConfirmationModel
from .order import OrderModel
from .buyer import BuyerModel, ReferralAccountModel
from .product import ProductModel
from .notification import NotificationModel

__all__ = [
    "Base",
    "metadata",
    "PaymentLockModel",
    "PaymentConfirmationModel",
    "OrderModel",
    "BuyerModel",
    "ReferralAccountModel",
    "ProductModel",
    "NotificationModel",
]
