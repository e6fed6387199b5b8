"""Domain errors raised by the billing core."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status

# Starlette renamed the 422 constant; the numeric code is stable.
_UNPROCESSABLE = 422


class BillingError(Exception):
    """Base class for errors surfaced to callers of the billing core.

    Each error carries a stable ``code`` alongside the human readable message so
    the embedding application can map it to API responses without string
    matching.
    """

    code: str = "billing_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        detail: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.detail: Dict[str, Any] = dict(detail or {})

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        base_detail.update(self.detail)
        return base_detail

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class NotFoundError(BillingError, LookupError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class SubscriptionNotFound(NotFoundError):
    code = "subscription_not_found"

    def __init__(self, reference: str) -> None:
        super().__init__(
            f"Subscription {reference!r} not found.",
            detail={"subscription": reference},
        )


class SubscriptionItemNotFound(NotFoundError):
    code = "subscription_item_not_found"

    def __init__(self, item_id: str) -> None:
        super().__init__(
            f"Item {item_id!r} is not part of the subscription.",
            detail={"subscription_item_id": item_id},
        )


class ProductNotFound(NotFoundError):
    code = "product_not_found"

    def __init__(self, reference: str) -> None:
        super().__init__(f"Product for {reference!r} not found.", detail={"product": reference})


class PriceNotFound(NotFoundError):
    code = "price_not_found"

    def __init__(self, price_id: str) -> None:
        super().__init__(f"Product price {price_id!r} not found.", detail={"price_id": price_id})


class BillingProviderNotFound(NotFoundError):
    code = "billing_provider_not_found"

    def __init__(self, provider: str) -> None:
        super().__init__(f"No billing provider registered as {provider!r}.", detail={"provider": provider})


class SubscriptionAlreadyExists(BillingError):
    code = "subscription_already_exists"
    status_code = status.HTTP_409_CONFLICT

    @classmethod
    def for_logical_name(cls, name: str) -> "SubscriptionAlreadyExists":
        return cls(
            f"An active subscription named {name!r} already exists for this billable.",
            detail={"name": name},
        )


class BillingProviderMissingCapability(BillingError):
    """The resolved provider does not implement an optional capability."""

    code = "billing_provider_missing_capability"
    status_code = _UNPROCESSABLE

    def __init__(self, provider: str, capability: str) -> None:
        super().__init__(
            f"Billing provider {provider!r} does not support {capability}.",
            detail={"provider": provider, "capability": capability},
        )
        self.provider = provider
        self.capability = capability


class SubscriptionInvariantViolation(BillingError):
    """A construction or transition would leave an aggregate in an invalid state."""

    code = "subscription_invariant_violation"
    status_code = status.HTTP_409_CONFLICT


class FeatureValueMismatch(SubscriptionInvariantViolation):
    code = "feature_value_mismatch"


class UnableToCreateSubscriptionDraft(BillingError):
    code = "invalid_subscription_draft"
    status_code = _UNPROCESSABLE

    @classmethod
    def missing_required_property(cls, name: str) -> "UnableToCreateSubscriptionDraft":
        return cls(f"Missing required property {name!r}.", detail={"property": name})

    @classmethod
    def missing_plan_price_identifier(cls) -> "UnableToCreateSubscriptionDraft":
        return cls(
            "Missing plan price identifier. Provide either a plan price id or a plan slug "
            "with interval and currency information."
        )


class InvalidSubscriptionDraft(BillingError):
    """The draft is well formed but does not match the catalog."""

    code = "invalid_subscription_draft"
    status_code = _UNPROCESSABLE


class EntitlementDenied(BillingError):
    code = "entitlement_required"
    status_code = status.HTTP_403_FORBIDDEN


__all__ = [
    "BillingError",
    "BillingProviderMissingCapability",
    "BillingProviderNotFound",
    "EntitlementDenied",
    "FeatureValueMismatch",
    "InvalidSubscriptionDraft",
    "NotFoundError",
    "PriceNotFound",
    "ProductNotFound",
    "SubscriptionAlreadyExists",
    "SubscriptionInvariantViolation",
    "SubscriptionItemNotFound",
    "SubscriptionNotFound",
    "UnableToCreateSubscriptionDraft",
]
