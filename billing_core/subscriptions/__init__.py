"""Subscription aggregate."""

from .models import (
    ProviderName,
    Subscription,
    SubscriptionEntitlement,
    SubscriptionItem,
    SubscriptionName,
    SubscriptionStatus,
)

__all__ = [
    "ProviderName",
    "Subscription",
    "SubscriptionEntitlement",
    "SubscriptionItem",
    "SubscriptionName",
    "SubscriptionStatus",
]
