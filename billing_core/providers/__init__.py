"""Provider capability model and the built-in synchronous provider."""

from .base import (
    BillingProvider,
    CustomerAwareBillingProvider,
    Options,
    PausableBillingProvider,
    ProductAwareBillingProvider,
    SwappableItemPriceBillingProvider,
)
from .external_ids import ExternalIdMapper, MemoryExternalIdMapper
from .registry import BillingProviderRegistry, InMemoryBillingProviderRegistry
from .results import (
    BillingProviderResult,
    BillingProviderResultStatus,
    ClientAction,
    ClientActionType,
    CustomerSyncResult,
    CustomerSyncResultStatus,
    ProductSyncResult,
)
from .synchronous import SynchronousBillingProvider

__all__ = [
    "BillingProvider",
    "BillingProviderRegistry",
    "BillingProviderResult",
    "BillingProviderResultStatus",
    "ClientAction",
    "ClientActionType",
    "CustomerAwareBillingProvider",
    "CustomerSyncResult",
    "CustomerSyncResultStatus",
    "ExternalIdMapper",
    "InMemoryBillingProviderRegistry",
    "MemoryExternalIdMapper",
    "Options",
    "PausableBillingProvider",
    "ProductAwareBillingProvider",
    "ProductSyncResult",
    "SwappableItemPriceBillingProvider",
    "SynchronousBillingProvider",
]
