"""Provider that applies every operation locally and immediately."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.billable import BillableDetails, BillableIdentity
from ..common.dates import current_time
from ..products.models import Product
from ..subscriptions.models import Subscription, SubscriptionEntitlement, SubscriptionItem
from .base import (
    BillingProvider,
    CustomerAwareBillingProvider,
    Options,
    PausableBillingProvider,
    ProductAwareBillingProvider,
    SwappableItemPriceBillingProvider,
)
from .results import BillingProviderResult, CustomerSyncResult, ProductSyncResult

logger = logging.getLogger(__name__)


class SynchronousBillingProvider(
    BillingProvider,
    PausableBillingProvider,
    SwappableItemPriceBillingProvider,
    CustomerAwareBillingProvider,
    ProductAwareBillingProvider,
):
    """Default provider with no payment processor behind it.

    Useful for free plans, local development and tests: every call returns a
    completed result carrying the transitioned aggregate.
    """

    def __init__(self, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock

    def _now(self) -> datetime:
        return current_time(self._clock)

    def create(self, subscription: Subscription, options: Options = None) -> BillingProviderResult:
        now = self._now()
        for item in subscription.items:
            if not item.has_period:
                subscription = subscription.set_item_period(item.id, now, item.interval.advance(now))
        return BillingProviderResult.completed(subscription.activate())

    def cancel(
        self, subscription: Subscription, at_period_end: bool = True, options: Options = None
    ) -> BillingProviderResult:
        return BillingProviderResult.completed(subscription.cancel(at_period_end, now=self._now()))

    def pause(self, subscription: Subscription, options: Options = None) -> BillingProviderResult:
        return BillingProviderResult.completed(subscription.pause())

    def resume(self, subscription: Subscription, options: Options = None) -> BillingProviderResult:
        return BillingProviderResult.completed(subscription.resume())

    def swap_item_price(
        self,
        subscription: Subscription,
        item: SubscriptionItem,
        product: Product,
        new_price_id: str,
        options: Options = None,
    ) -> BillingProviderResult:
        price = product.find_price(new_price_id)
        grants = [SubscriptionEntitlement.from_feature(feature) for feature in product.sorted_features()]
        swapped = subscription.swap_item_price(
            item.id,
            price_id=price.id,
            price=price.price,
            interval=price.interval,
            entitlements=grants,
        )
        return BillingProviderResult.completed(swapped)

    def sync_customer(
        self,
        billable: BillableIdentity,
        details: Optional[BillableDetails] = None,
        options: Options = None,
    ) -> CustomerSyncResult:
        return CustomerSyncResult.completed(str(billable.id))

    def sync_product(self, product: Product, options: Options = None) -> ProductSyncResult:
        return ProductSyncResult.completed(1, len(product.prices))

    def sync_products(self, products: Sequence[Product], options: Options = None) -> ProductSyncResult:
        result = ProductSyncResult.empty()
        for product in products:
            result = result.merged(self.sync_product(product, options))
        logger.debug("Synced %s products locally", result.products_synced)
        return result


__all__ = ["SynchronousBillingProvider"]
