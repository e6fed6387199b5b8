"""Turns a draft plus catalog data into an incomplete subscription."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from ..common.billable import BillableIdentity
from ..errors import (
    InvalidSubscriptionDraft,
    PriceNotFound,
    ProductNotFound,
    UnableToCreateSubscriptionDraft,
)
from ..products.models import Product, ProductPrice, ProductPriceInterval, find_product_by_price
from ..subscriptions.models import Subscription, SubscriptionEntitlement, SubscriptionItem
from .drafts import SubscriptionDraft


def _grants_for(product: Product) -> List[SubscriptionEntitlement]:
    return [SubscriptionEntitlement.from_feature(feature) for feature in product.sorted_features()]


def _item_for(product: Product, price: ProductPrice, quantity: int) -> SubscriptionItem:
    return SubscriptionItem.create(
        price.id,
        price.price,
        price.interval,
        quantity=quantity,
        entitlements=_grants_for(product),
    )


class SubscriptionFactory:
    """Each catalog product is looked up once and reused for validation and item construction."""

    def from_catalog(
        self,
        products: Iterable[Product],
        draft: SubscriptionDraft,
        now: Optional[datetime] = None,
    ) -> Subscription:
        catalog = list(products)
        primary_product, primary_price = self._resolve_plan(catalog, draft)

        addons: List[Tuple[Product, ProductPrice, int]] = []
        for addon in draft.addons:
            product = find_product_by_price(catalog, addon.price_id)
            if product is None:
                raise ProductNotFound(addon.price_id)
            price = product.find_price(addon.price_id)
            if not price.price.has_same_currency(primary_price.price):
                raise InvalidSubscriptionDraft(
                    "Addon price currency must match the plan price currency.",
                    detail={"price_id": addon.price_id, "currency": price.price.currency},
                )
            addons.append((product, price, addon.quantity))

        subscription = Subscription.create(
            name=draft.name,
            billable=BillableIdentity.of(draft.billable_type, draft.billable_id),
            provider=draft.provider,
            trial_ends_at=draft.trial_ends_at,
            now=now,
        )
        subscription = subscription.with_primary_item(_item_for(primary_product, primary_price, draft.quantity))
        for product, price, quantity in addons:
            subscription = subscription.with_item(_item_for(product, price, quantity))
        return subscription

    def _resolve_plan(self, catalog: Sequence[Product], draft: SubscriptionDraft) -> Tuple[Product, ProductPrice]:
        if draft.identifies_plan_by_price:
            product = find_product_by_price(catalog, draft.price_id)
            if product is None:
                raise ProductNotFound(draft.price_id)
            price = product.find_price(draft.price_id)
        elif draft.identifies_plan_by_slug:
            interval = ProductPriceInterval.of(draft.interval_type, draft.interval_count)
            candidates = [candidate for candidate in catalog if candidate.slug == draft.plan]
            if not candidates:
                raise ProductNotFound(draft.plan)
            for product in candidates:
                price = product.find_price_for(interval, draft.currency)
                if price is not None:
                    break
            else:
                raise PriceNotFound(f"{draft.plan}/{interval.count} {interval.type.value}/{draft.currency}")
        else:
            raise UnableToCreateSubscriptionDraft.missing_plan_price_identifier()

        if not product.is_plan:
            raise InvalidSubscriptionDraft(
                "The primary product must be a plan.", detail={"product_id": product.id}
            )
        return product, price


__all__ = ["SubscriptionFactory"]
