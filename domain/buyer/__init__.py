"""Buyer domain exports."""
from .entity import Buyer, ReferralAccount
from .repository import BuyerRepository, ReferralAccountRepository

__all__ = ["Buyer", "ReferralAccount", "BuyerRepository", "ReferralAccountRepository"]
