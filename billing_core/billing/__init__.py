"""Subscription orchestration: drafts, factory, use cases and repositories."""

from .drafts import AddonDraft, SubscriptionDraft, SubscriptionDraftBuilder
from .factory import SubscriptionFactory
from .memory import (
    InMemoryProductRepository,
    InMemorySubscriptionRepository,
    NullBillableDetailsResolver,
    StaticBillableDetailsResolver,
)
from .service import BillableDetailsResolver, BillingManager, ProductRepository, SubscriptionRepository

__all__ = [
    "AddonDraft",
    "BillableDetailsResolver",
    "BillingManager",
    "InMemoryProductRepository",
    "InMemorySubscriptionRepository",
    "NullBillableDetailsResolver",
    "ProductRepository",
    "StaticBillableDetailsResolver",
    "SubscriptionDraft",
    "SubscriptionDraftBuilder",
    "SubscriptionFactory",
    "SubscriptionRepository",
]
