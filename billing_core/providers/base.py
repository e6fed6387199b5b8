"""Capability protocols implemented by billing provider integrations.

``BillingProvider`` is the baseline every integration supports. The other
protocols are optional facets; callers detect them with ``isinstance`` before
dispatching a capability specific call.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..common.billable import BillableDetails, BillableIdentity
from ..products.models import Product
from ..subscriptions.models import Subscription, SubscriptionItem
from .results import BillingProviderResult, CustomerSyncResult, ProductSyncResult

Options = Optional[Mapping[str, Any]]


@runtime_checkable
class BillingProvider(Protocol):
    def create(self, subscription: Subscription, options: Options = None) -> BillingProviderResult:
        ...

    def cancel(
        self, subscription: Subscription, at_period_end: bool = True, options: Options = None
    ) -> BillingProviderResult:
        ...


@runtime_checkable
class PausableBillingProvider(Protocol):
    def pause(self, subscription: Subscription, options: Options = None) -> BillingProviderResult:
        ...

    def resume(self, subscription: Subscription, options: Options = None) -> BillingProviderResult:
        ...


@runtime_checkable
class SwappableItemPriceBillingProvider(Protocol):
    def swap_item_price(
        self,
        subscription: Subscription,
        item: SubscriptionItem,
        product: Product,
        new_price_id: str,
        options: Options = None,
    ) -> BillingProviderResult:
        ...


@runtime_checkable
class CustomerAwareBillingProvider(Protocol):
    def sync_customer(
        self,
        billable: BillableIdentity,
        details: Optional[BillableDetails] = None,
        options: Options = None,
    ) -> CustomerSyncResult:
        ...


@runtime_checkable
class ProductAwareBillingProvider(Protocol):
    def sync_product(self, product: Product, options: Options = None) -> ProductSyncResult:
        ...

    def sync_products(self, products: Sequence[Product], options: Options = None) -> ProductSyncResult:
        ...


__all__ = [
    "BillingProvider",
    "CustomerAwareBillingProvider",
    "Options",
    "PausableBillingProvider",
    "ProductAwareBillingProvider",
    "SwappableItemPriceBillingProvider",
]
