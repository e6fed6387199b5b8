"""Use cases routing subscription operations to provider integrations."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Type

from ..common.billable import BillableDetails, BillableIdentity
from ..common.dates import current_time
from ..entitlements.checker import EntitlementChecker, EntitlementCheckerFactory
from ..errors import (
    BillingProviderMissingCapability,
    ProductNotFound,
    SubscriptionAlreadyExists,
    SubscriptionNotFound,
)
from ..products.models import Product
from ..providers.base import (
    BillingProvider,
    CustomerAwareBillingProvider,
    Options,
    PausableBillingProvider,
    ProductAwareBillingProvider,
    SwappableItemPriceBillingProvider,
)
from ..providers.registry import BillingProviderRegistry
from ..providers.results import BillingProviderResult, ProductSyncResult
from ..subscriptions.models import Subscription
from .drafts import SubscriptionDraft
from .factory import SubscriptionFactory

logger = logging.getLogger(__name__)


class ProductRepository(Protocol):
    """Catalog storage."""

    def all(self) -> List[Product]:
        ...

    def find(self, product_id: str) -> Optional[Product]:
        ...

    def find_by_price_id(self, price_id: str) -> Optional[Product]:
        ...

    def find_multiple_by_price_ids(self, price_ids: Iterable[str]) -> List[Product]:
        ...

    def save(self, product: Product) -> None:
        ...


class SubscriptionRepository(Protocol):
    """Subscription storage. ``save`` replaces any prior state for the id."""

    def find(self, subscription_id: str) -> Optional[Subscription]:
        ...

    def find_by_item_id(self, item_id: str) -> Optional[Subscription]:
        ...

    def find_for_billable(self, billable: BillableIdentity, name: str) -> Optional[Subscription]:
        ...

    def find_all_for_billable(self, billable: BillableIdentity) -> List[Subscription]:
        ...

    def save(self, subscription: Subscription) -> None:
        ...


class BillableDetailsResolver(Protocol):
    """Looks up profile data for customer sync; ``None`` when unavailable."""

    def resolve(self, billable: BillableIdentity) -> Optional[BillableDetails]:
        ...


@dataclass
class BillingManager:
    """Coordinates subscriptions, the catalog and provider integrations.

    Every use case persists the aggregate returned by the provider, whatever
    the result status, and hands the result back to the caller.
    """

    products: ProductRepository
    subscriptions: SubscriptionRepository
    providers: BillingProviderRegistry
    billable_details: BillableDetailsResolver
    factory: SubscriptionFactory = field(default_factory=SubscriptionFactory)
    entitlement_checkers: EntitlementCheckerFactory = field(default_factory=EntitlementCheckerFactory)
    clock: Optional[Callable[[], datetime]] = None

    def _now(self) -> datetime:
        return current_time(self.clock)

    def create_subscription(self, draft: SubscriptionDraft, options: Options = None) -> BillingProviderResult:
        billable = BillableIdentity.of(draft.billable_type, draft.billable_id)
        existing = self.subscriptions.find_for_billable(billable, draft.name.strip())
        if existing is not None and existing.is_active:
            logger.warning("Active subscription %s already exists for %s", draft.name, billable)
            raise SubscriptionAlreadyExists.for_logical_name(draft.name)

        gateway = self.providers.subscription_provider_for(draft.provider)

        if isinstance(gateway, CustomerAwareBillingProvider):
            details = self.billable_details.resolve(billable)
            if details is not None:
                sync = gateway.sync_customer(billable, details)
                logger.info("Synced customer %s with %s: %s", billable, draft.provider, sync.status.value)

        subscription = self.factory.from_catalog(self.products.all(), draft, now=self._now())
        result = gateway.create(subscription, options)
        return self._persist("create", result)

    def cancel_subscription(
        self, subscription_id: str, at_period_end: bool = True, options: Options = None
    ) -> BillingProviderResult:
        subscription = self._find(subscription_id)
        gateway = self.providers.subscription_provider_for(subscription.provider)
        result = gateway.cancel(subscription, at_period_end, options)
        return self._persist("cancel", result)

    def pause_subscription(self, subscription_id: str, options: Options = None) -> BillingProviderResult:
        subscription = self._find(subscription_id)
        gateway = self._require(subscription.provider, PausableBillingProvider)
        result = gateway.pause(subscription, options)
        return self._persist("pause", result)

    def resume_subscription(self, subscription_id: str, options: Options = None) -> BillingProviderResult:
        subscription = self._find(subscription_id)
        gateway = self._require(subscription.provider, PausableBillingProvider)
        result = gateway.resume(subscription, options)
        return self._persist("resume", result)

    def swap_subscription_item_price(
        self, item_id: str, new_price_id: str, options: Options = None
    ) -> BillingProviderResult:
        subscription = self.subscriptions.find_by_item_id(item_id)
        if subscription is None:
            raise SubscriptionNotFound(item_id)

        gateway = self._require(subscription.provider, SwappableItemPriceBillingProvider)

        product = self.products.find_by_price_id(new_price_id)
        if product is None:
            raise ProductNotFound(new_price_id)

        item = subscription.find_item(item_id)
        result = gateway.swap_item_price(subscription, item, product, new_price_id, options)
        return self._persist("swap_item_price", result)

    def sync_products(self, provider: Optional[str] = None, options: Options = None) -> Dict[str, ProductSyncResult]:
        """Push the whole catalog to product-aware providers."""

        if provider is not None:
            targets = {provider: self._require(provider, ProductAwareBillingProvider)}
        else:
            targets = self.providers.product_aware_providers()

        catalog = self.products.all()
        results: Dict[str, ProductSyncResult] = {}
        for name, gateway in targets.items():
            results[name] = gateway.sync_products(catalog, options)
            logger.info(
                "Synced %s products and %s prices to %s",
                results[name].products_synced,
                results[name].prices_synced,
                name,
            )
        return results

    def entitlements_for(self, subscription_id: str, at: Optional[datetime] = None) -> EntitlementChecker:
        subscription = self._find(subscription_id)
        return self.entitlement_checkers.for_subscription(subscription, at if at is not None else self._now())

    def _find(self, subscription_id: str) -> Subscription:
        subscription = self.subscriptions.find(subscription_id)
        if subscription is None:
            raise SubscriptionNotFound(subscription_id)
        return subscription

    def _require(self, provider: str, capability: Type) -> BillingProvider:
        gateway = self.providers.subscription_provider_for(provider)
        if not isinstance(gateway, capability):
            logger.warning("Provider %s lacks %s", provider, capability.__name__)
            raise BillingProviderMissingCapability(provider, capability.__name__)
        return gateway

    def _persist(self, operation: str, result: BillingProviderResult) -> BillingProviderResult:
        subscription = result.subscription
        self.subscriptions.save(subscription)
        if result.is_failure:
            logger.warning(
                "%s for subscription %s failed at %s: %s",
                operation,
                subscription.id,
                subscription.provider,
                result.reason,
            )
        else:
            logger.info(
                "%s for subscription %s via %s: %s",
                operation,
                subscription.id,
                subscription.provider,
                result.status.value,
            )
        return result


__all__ = [
    "BillableDetailsResolver",
    "BillingManager",
    "ProductRepository",
    "SubscriptionRepository",
]
