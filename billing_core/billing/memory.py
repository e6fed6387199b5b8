"""Dictionary backed repositories for development and tests."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from ..common.billable import BillableDetails, BillableIdentity
from ..products.models import Product
from ..subscriptions.models import Subscription
from .service import BillableDetailsResolver, ProductRepository, SubscriptionRepository


class InMemoryProductRepository(ProductRepository):
    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: Dict[str, Product] = {}
        for product in products:
            self.save(product)

    def all(self) -> List[Product]:
        return list(self._products.values())

    def find(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def find_by_price_id(self, price_id: str) -> Optional[Product]:
        for product in self._products.values():
            if product.has_price(price_id):
                return product
        return None

    def find_multiple_by_price_ids(self, price_ids: Iterable[str]) -> List[Product]:
        wanted = set(price_ids)
        return [
            product
            for product in self._products.values()
            if any(price.id in wanted for price in product.prices)
        ]

    def save(self, product: Product) -> None:
        self._products[product.id] = product


class InMemorySubscriptionRepository(SubscriptionRepository):
    def __init__(self) -> None:
        self._subscriptions: Dict[str, Subscription] = {}

    def find(self, subscription_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(subscription_id)

    def find_by_item_id(self, item_id: str) -> Optional[Subscription]:
        for subscription in self._subscriptions.values():
            if subscription.has_item(item_id):
                return subscription
        return None

    def find_for_billable(self, billable: BillableIdentity, name: str) -> Optional[Subscription]:
        # Prefer the active subscription when canceled ones share the name.
        matches = [
            subscription
            for subscription in self._subscriptions.values()
            if subscription.billable.same_party(billable) and subscription.name == name
        ]
        for subscription in matches:
            if subscription.is_active:
                return subscription
        return matches[-1] if matches else None

    def find_all_for_billable(self, billable: BillableIdentity) -> List[Subscription]:
        return [
            subscription
            for subscription in self._subscriptions.values()
            if subscription.billable.same_party(billable)
        ]

    def save(self, subscription: Subscription) -> None:
        self._subscriptions[subscription.id] = subscription


class NullBillableDetailsResolver(BillableDetailsResolver):
    def resolve(self, billable: BillableIdentity) -> Optional[BillableDetails]:
        return None


class StaticBillableDetailsResolver(BillableDetailsResolver):
    """Serves details registered up front, keyed by billable identity."""

    def __init__(self, details: Optional[Dict[BillableIdentity, BillableDetails]] = None) -> None:
        self._details: Dict[Tuple[str, str], BillableDetails] = {}
        for billable, entry in (details or {}).items():
            self.register(billable, entry)

    def register(self, billable: BillableIdentity, details: BillableDetails) -> None:
        self._details[billable.lookup_key] = details

    def resolve(self, billable: BillableIdentity) -> Optional[BillableDetails]:
        return self._details.get(billable.lookup_key)


__all__ = [
    "InMemoryProductRepository",
    "InMemorySubscriptionRepository",
    "NullBillableDetailsResolver",
    "StaticBillableDetailsResolver",
]
