"""Lookup of provider integrations by the name stored on subscriptions."""
from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from ..errors import BillingProviderNotFound
from .base import BillingProvider, ProductAwareBillingProvider


class BillingProviderRegistry(Protocol):
    def subscription_provider_for(self, name: str) -> BillingProvider:
        ...

    def all(self) -> Dict[str, BillingProvider]:
        ...

    def product_aware_providers(self) -> Dict[str, ProductAwareBillingProvider]:
        ...


class InMemoryBillingProviderRegistry(BillingProviderRegistry):
    def __init__(self, providers: Optional[Dict[str, BillingProvider]] = None) -> None:
        self._providers: Dict[str, BillingProvider] = {}
        for name, provider in (providers or {}).items():
            self.register(name, provider)

    def register(self, name: str, provider: BillingProvider) -> None:
        if not isinstance(provider, BillingProvider):
            raise TypeError(f"{provider!r} does not implement create/cancel")
        self._providers[name] = provider

    def names(self) -> List[str]:
        return list(self._providers)

    def subscription_provider_for(self, name: str) -> BillingProvider:
        try:
            return self._providers[name]
        except KeyError:
            raise BillingProviderNotFound(name) from None

    def all(self) -> Dict[str, BillingProvider]:
        return dict(self._providers)

    def product_aware_providers(self) -> Dict[str, ProductAwareBillingProvider]:
        return {
            name: provider
            for name, provider in self._providers.items()
            if isinstance(provider, ProductAwareBillingProvider)
        }


__all__ = ["BillingProviderRegistry", "InMemoryBillingProviderRegistry"]
