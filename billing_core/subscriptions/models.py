"""Subscription aggregate: lifecycle state machine and its line items.

Every operation returns a new snapshot built through the model constructor,
so all invariants are re-checked and an invalid aggregate is never observable.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Callable, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StringConstraints, model_validator

from ..common.billable import BillableIdentity
from ..common.dates import DateRange, UtcDatetime, current_time, ensure_utc
from ..common.features import FeatureKey, FeatureValue
from ..common.ids import Identifier, new_id
from ..common.money import Money
from ..errors import SubscriptionInvariantViolation, SubscriptionItemNotFound
from ..products.models import ProductFeature, ProductPriceInterval

SubscriptionName = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[a-z0-9_]+$")]
ProviderName = Annotated[str, StringConstraints(pattern=r"^[A-Za-z0-9_]+$")]


class SubscriptionStatus(str, Enum):
    INCOMPLETE = "incomplete"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELED = "canceled"


class SubscriptionEntitlement(BaseModel):
    """Feature granted by a subscription item, optionally limited to a window."""

    id: Identifier = Field(default_factory=new_id)
    key: FeatureKey
    value: FeatureValue
    effective_window: Optional[DateRange] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def grant(
        cls,
        key: str,
        value: FeatureValue,
        effective_window: Optional[DateRange] = None,
    ) -> "SubscriptionEntitlement":
        return cls(id=new_id(), key=key, value=value, effective_window=effective_window)

    @classmethod
    def from_feature(
        cls, feature: ProductFeature, effective_window: Optional[DateRange] = None
    ) -> "SubscriptionEntitlement":
        return cls.grant(feature.key, feature.value, effective_window)

    def is_active_at(self, moment: datetime) -> bool:
        if self.effective_window is None:
            return True
        return self.effective_window.contains(moment)


class SubscriptionItem(BaseModel):
    id: Identifier = Field(default_factory=new_id)
    price_id: Identifier
    quantity: StrictInt = 1
    price: Money
    interval: ProductPriceInterval
    entitlements: Tuple[SubscriptionEntitlement, ...] = ()
    current_period_start: Optional[UtcDatetime] = None
    current_period_end: Optional[UtcDatetime] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_item(self) -> "SubscriptionItem":
        if self.quantity < 1:
            raise SubscriptionInvariantViolation(
                "Item quantity must be at least 1.", detail={"subscription_item_id": self.id}
            )
        if (self.current_period_start is None) != (self.current_period_end is None):
            raise SubscriptionInvariantViolation(
                "Item period start and end must be set together.",
                detail={"subscription_item_id": self.id},
            )
        if self.current_period_start is not None and self.current_period_start >= self.current_period_end:
            raise SubscriptionInvariantViolation(
                "Item period start must be before its end.", detail={"subscription_item_id": self.id}
            )
        keys = [grant.key for grant in self.entitlements]
        if len(set(keys)) != len(keys):
            raise SubscriptionInvariantViolation(
                "Entitlement keys must be unique per item.", detail={"subscription_item_id": self.id}
            )
        return self

    @classmethod
    def create(
        cls,
        price_id: str,
        price: Money,
        interval: ProductPriceInterval,
        quantity: int = 1,
        entitlements: Iterable[SubscriptionEntitlement] = (),
        *,
        item_id: Optional[str] = None,
    ) -> "SubscriptionItem":
        return cls(
            id=item_id or new_id(),
            price_id=price_id,
            quantity=quantity,
            price=price,
            interval=interval,
            entitlements=tuple(entitlements),
        )

    def _replace(self, **changes) -> "SubscriptionItem":
        return type(self)(**{**dict(self), **changes})

    @property
    def currency(self) -> str:
        return self.price.currency

    @property
    def has_period(self) -> bool:
        return self.current_period_start is not None and self.current_period_end is not None

    def with_quantity(self, quantity: int) -> "SubscriptionItem":
        return self._replace(quantity=quantity)

    def with_period(self, start: datetime, end: datetime) -> "SubscriptionItem":
        return self._replace(current_period_start=ensure_utc(start), current_period_end=ensure_utc(end))

    def with_entitlements(self, *entitlements: SubscriptionEntitlement) -> "SubscriptionItem":
        return self._replace(entitlements=tuple(entitlements))

    def with_price(
        self,
        price_id: str,
        price: Money,
        interval: ProductPriceInterval,
        entitlements: Optional[Iterable[SubscriptionEntitlement]] = None,
    ) -> "SubscriptionItem":
        changes = {"price_id": price_id, "price": price, "interval": interval}
        if entitlements is not None:
            changes["entitlements"] = tuple(entitlements)
        return self._replace(**changes)


class Subscription(BaseModel):
    id: Identifier = Field(default_factory=new_id)
    billable: BillableIdentity
    provider: ProviderName
    name: SubscriptionName
    status: SubscriptionStatus = SubscriptionStatus.INCOMPLETE
    items: Tuple[SubscriptionItem, ...] = ()
    primary_item_id: Optional[Identifier] = None
    created_at: UtcDatetime
    cancel_at_period_end: StrictBool = False
    trial_ends_at: Optional[UtcDatetime] = None
    canceled_at: Optional[UtcDatetime] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Subscription":
        detail = {"subscription_id": self.id}
        item_ids = [item.id for item in self.items]
        if len(set(item_ids)) != len(item_ids):
            raise SubscriptionInvariantViolation("Subscription item ids must be unique.", detail=detail)
        if self.status == SubscriptionStatus.ACTIVE and not self.items:
            raise SubscriptionInvariantViolation("An active subscription needs at least one item.", detail=detail)
        if self.items and self.primary_item_id not in item_ids:
            raise SubscriptionInvariantViolation("Primary item must be one of the subscription items.", detail=detail)
        if not self.items and self.primary_item_id is not None:
            raise SubscriptionInvariantViolation("Primary item set on a subscription without items.", detail=detail)
        if len({item.currency for item in self.items}) > 1:
            raise SubscriptionInvariantViolation("All subscription items must share one currency.", detail=detail)
        if self.status == SubscriptionStatus.ACTIVE and not all(item.has_period for item in self.items):
            raise SubscriptionInvariantViolation("Active subscription items need a current period.", detail=detail)
        if (self.status == SubscriptionStatus.CANCELED) != (self.canceled_at is not None):
            raise SubscriptionInvariantViolation(
                "canceled_at must be set exactly when the subscription is canceled.", detail=detail
            )
        return self

    @classmethod
    def create(
        cls,
        *,
        name: str,
        billable: BillableIdentity,
        provider: str,
        trial_ends_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
        subscription_id: Optional[str] = None,
    ) -> "Subscription":
        return cls(
            id=subscription_id or new_id(),
            billable=billable,
            provider=provider,
            name=name,
            status=SubscriptionStatus.INCOMPLETE,
            created_at=now if now is not None else current_time(),
            trial_ends_at=trial_ends_at,
        )

    def _replace(self, **changes) -> "Subscription":
        return type(self)(**{**dict(self), **changes})

    def _replace_item(
        self, item_id: str, update: Callable[[SubscriptionItem], SubscriptionItem]
    ) -> "Subscription":
        self.find_item(item_id)
        items: List[SubscriptionItem] = [update(item) if item.id == item_id else item for item in self.items]
        return self._replace(items=tuple(items))

    def _transition_error(self, action: str) -> SubscriptionInvariantViolation:
        return SubscriptionInvariantViolation(
            f"Cannot {action} a subscription that is {self.status.value}.",
            detail={"subscription_id": self.id, "status": self.status.value},
        )

    # Lifecycle

    def activate(self) -> "Subscription":
        if self.status == SubscriptionStatus.ACTIVE:
            return self
        if self.status == SubscriptionStatus.CANCELED:
            raise self._transition_error("activate")
        return self._replace(status=SubscriptionStatus.ACTIVE)

    def pause(self) -> "Subscription":
        if self.status == SubscriptionStatus.CANCELED:
            raise self._transition_error("pause")
        return self._replace(status=SubscriptionStatus.PAUSED)

    def resume(self) -> "Subscription":
        if self.status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED):
            raise self._transition_error("resume")
        return self._replace(status=SubscriptionStatus.ACTIVE)

    def cancel(self, at_period_end: bool = True, now: Optional[datetime] = None) -> "Subscription":
        if self.status == SubscriptionStatus.CANCELED:
            return self
        if at_period_end:
            return self._replace(cancel_at_period_end=True)
        return self._replace(
            status=SubscriptionStatus.CANCELED,
            canceled_at=now if now is not None else current_time(),
        )

    # Items

    def with_primary_item(self, item: SubscriptionItem) -> "Subscription":
        if self.primary_item_id == item.id and self.has_item(item.id):
            return self
        if self.has_item(item.id):
            return self._replace(primary_item_id=item.id)
        return self._replace(items=self.items + (item,), primary_item_id=item.id)

    def with_item(self, item: SubscriptionItem) -> "Subscription":
        return self._replace(items=self.items + (item,))

    def change_primary_item(self, item_id: str) -> "Subscription":
        self.find_item(item_id)
        return self._replace(primary_item_id=item_id)

    def change_item_quantity(self, item_id: str, quantity: int) -> "Subscription":
        return self._replace_item(item_id, lambda item: item.with_quantity(quantity))

    def set_item_period(self, item_id: str, start: datetime, end: datetime) -> "Subscription":
        return self._replace_item(item_id, lambda item: item.with_period(start, end))

    def swap_item_price(
        self,
        item_id: str,
        *,
        price_id: str,
        price: Money,
        interval: ProductPriceInterval,
        entitlements: Optional[Iterable[SubscriptionEntitlement]] = None,
    ) -> "Subscription":
        return self._replace_item(
            item_id, lambda item: item.with_price(price_id, price, interval, entitlements)
        )

    # Queries

    @property
    def primary_item(self) -> Optional[SubscriptionItem]:
        for item in self.items:
            if item.id == self.primary_item_id:
                return item
        return None

    @property
    def addon_items(self) -> Tuple[SubscriptionItem, ...]:
        return tuple(item for item in self.items if item.id != self.primary_item_id)

    @property
    def currency(self) -> Optional[str]:
        primary = self.primary_item
        return primary.currency if primary is not None else None

    def has_item(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self.items)

    def find_item(self, item_id: str) -> SubscriptionItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise SubscriptionItemNotFound(item_id)

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    @property
    def is_paused(self) -> bool:
        return self.status == SubscriptionStatus.PAUSED

    @property
    def is_canceled(self) -> bool:
        return self.status == SubscriptionStatus.CANCELED

    def is_in_trial(self, now: Optional[datetime] = None) -> bool:
        if self.trial_ends_at is None:
            return False
        moment = ensure_utc(now) if now is not None else current_time()
        return moment < self.trial_ends_at

    def entitlements(self) -> Tuple[SubscriptionEntitlement, ...]:
        """Every grant of every item, in item order."""

        return tuple(grant for item in self.items for grant in item.entitlements)


__all__ = [
    "ProviderName",
    "Subscription",
    "SubscriptionEntitlement",
    "SubscriptionItem",
    "SubscriptionName",
    "SubscriptionStatus",
]
