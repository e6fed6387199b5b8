"""Values returned by provider integrations."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, model_validator

from ..subscriptions.models import Subscription


class BillingProviderResultStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    REQUIRES_ACTION = "requires_action"


class ClientActionType(str, Enum):
    NONE = "none"
    REDIRECT = "redirect"


class ClientAction(BaseModel):
    """What the client must do before the provider can finish the operation."""

    type: ClientActionType = ClientActionType.NONE
    url: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validate_url(self) -> "ClientAction":
        if self.type == ClientActionType.REDIRECT and not (self.url and self.url.strip()):
            raise ValueError("A redirect action needs a url.")
        if self.type == ClientActionType.NONE and self.url is not None:
            raise ValueError("Only redirect actions carry a url.")
        return self

    @classmethod
    def none(cls) -> "ClientAction":
        return cls()

    @classmethod
    def redirect(cls, url: str) -> "ClientAction":
        return cls(type=ClientActionType.REDIRECT, url=url)

    @property
    def is_none(self) -> bool:
        return self.type == ClientActionType.NONE


class BillingProviderResult(BaseModel):
    """Outcome of a provider operation.

    A failed call is not an exception: the aggregate the provider hands back is
    persisted like any other result and the reason travels to the caller.
    """

    subscription: Subscription
    status: BillingProviderResultStatus = BillingProviderResultStatus.SUCCESS
    client_action: ClientAction = Field(default_factory=ClientAction.none)
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validate_status(self) -> "BillingProviderResult":
        requires_action = self.status == BillingProviderResultStatus.REQUIRES_ACTION
        if requires_action == self.client_action.is_none:
            raise ValueError("Client actions are carried exactly by requires_action results.")
        if self.status == BillingProviderResultStatus.FAILURE and not (self.reason and self.reason.strip()):
            raise ValueError("A failed result needs a reason.")
        return self

    @classmethod
    def completed(cls, subscription: Subscription) -> "BillingProviderResult":
        return cls(subscription=subscription)

    @classmethod
    def redirect(cls, subscription: Subscription, url: str) -> "BillingProviderResult":
        return cls(
            subscription=subscription,
            status=BillingProviderResultStatus.REQUIRES_ACTION,
            client_action=ClientAction.redirect(url),
        )

    @classmethod
    def failed(cls, subscription: Subscription, reason: str) -> "BillingProviderResult":
        return cls(subscription=subscription, status=BillingProviderResultStatus.FAILURE, reason=reason)

    @property
    def requires_action(self) -> bool:
        return not self.client_action.is_none

    @property
    def is_success(self) -> bool:
        return self.status == BillingProviderResultStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == BillingProviderResultStatus.FAILURE


class CustomerSyncResultStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class CustomerSyncResult(BaseModel):
    status: CustomerSyncResultStatus = CustomerSyncResultStatus.SUCCESS
    provider_customer_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def completed(cls, provider_customer_id: str, metadata: Optional[Mapping[str, Any]] = None) -> "CustomerSyncResult":
        return cls(provider_customer_id=provider_customer_id, metadata=dict(metadata or {}))

    @classmethod
    def failed(cls, metadata: Optional[Mapping[str, Any]] = None) -> "CustomerSyncResult":
        return cls(status=CustomerSyncResultStatus.FAILED, metadata=dict(metadata or {}))


class ProductSyncResult(BaseModel):
    products_synced: NonNegativeInt = 0
    prices_synced: NonNegativeInt = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def completed(
        cls, products_synced: int, prices_synced: int, metadata: Optional[Mapping[str, Any]] = None
    ) -> "ProductSyncResult":
        return cls(products_synced=products_synced, prices_synced=prices_synced, metadata=dict(metadata or {}))

    @classmethod
    def empty(cls) -> "ProductSyncResult":
        return cls()

    def merged(self, other: "ProductSyncResult") -> "ProductSyncResult":
        """Add up counts; metadata from ``other`` wins on key clashes."""

        return ProductSyncResult(
            products_synced=self.products_synced + other.products_synced,
            prices_synced=self.prices_synced + other.prices_synced,
            metadata={**self.metadata, **other.metadata},
        )


__all__ = [
    "BillingProviderResult",
    "BillingProviderResultStatus",
    "ClientAction",
    "ClientActionType",
    "CustomerSyncResult",
    "CustomerSyncResultStatus",
    "ProductSyncResult",
]
