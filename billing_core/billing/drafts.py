"""Subscription drafts: what a caller wants to subscribe to, before catalog lookup."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple, Union

from ..common.dates import current_time, ensure_utc
from ..errors import UnableToCreateSubscriptionDraft


@dataclass(frozen=True)
class AddonDraft:
    price_id: str
    quantity: int = 1


@dataclass(frozen=True)
class SubscriptionDraft:
    """Unresolved request for a subscription.

    The plan is identified either by ``price_id`` or by ``plan`` slug together
    with the interval and currency of the wanted price.
    """

    name: str
    billable_type: str
    billable_id: Union[str, int]
    provider: str
    price_id: Optional[str] = None
    plan: Optional[str] = None
    interval_type: Optional[str] = None
    interval_count: int = 1
    currency: Optional[str] = None
    quantity: int = 1
    trial_ends_at: Optional[datetime] = None
    addons: Tuple[AddonDraft, ...] = field(default_factory=tuple)

    @property
    def identifies_plan_by_price(self) -> bool:
        return bool(self.price_id)

    @property
    def identifies_plan_by_slug(self) -> bool:
        return bool(self.plan and self.interval_type and self.interval_count and self.currency)

    def addon_price_ids(self) -> List[str]:
        return [addon.price_id for addon in self.addons]


class SubscriptionDraftBuilder:
    """Fluent construction of a :class:`SubscriptionDraft`."""

    _REQUIRED = ("name", "billable_id", "billable_type", "provider")

    def __init__(self) -> None:
        self.name: Optional[str] = None
        self.billable_type: Optional[str] = None
        self.billable_id: Optional[Union[str, int]] = None
        self.provider: Optional[str] = None
        self.price_id: Optional[str] = None
        self.plan: Optional[str] = None
        self.interval_type: Optional[str] = None
        self.interval_count = 1
        self.currency: Optional[str] = None
        self.quantity = 1
        self.trial_ends_at: Optional[datetime] = None
        self.addons: List[AddonDraft] = []

    def with_name(self, name: str) -> "SubscriptionDraftBuilder":
        self.name = name
        return self

    def with_billable(self, billable_type: str, billable_id: Union[str, int]) -> "SubscriptionDraftBuilder":
        self.billable_type = billable_type
        self.billable_id = billable_id
        return self

    def with_provider(self, provider: str) -> "SubscriptionDraftBuilder":
        self.provider = provider
        return self

    def with_plan_price_id(self, price_id: str, quantity: int = 1) -> "SubscriptionDraftBuilder":
        self.price_id = price_id
        self.quantity = quantity
        return self

    def with_plan(
        self, plan: str, interval_type: str, interval_count: int, currency: str
    ) -> "SubscriptionDraftBuilder":
        self.plan = plan
        self.interval_type = interval_type
        self.interval_count = interval_count
        self.currency = currency
        return self

    def with_quantity(self, quantity: int) -> "SubscriptionDraftBuilder":
        self.quantity = quantity
        return self

    def with_trial_ends_at(self, trial_ends_at: Optional[datetime]) -> "SubscriptionDraftBuilder":
        self.trial_ends_at = ensure_utc(trial_ends_at) if trial_ends_at is not None else None
        return self

    def with_trial_days(self, days: int, *, now: Optional[datetime] = None) -> "SubscriptionDraftBuilder":
        """End the trial ``days`` days after the coming midnight (UTC)."""

        moment = ensure_utc(now) if now is not None else current_time()
        tomorrow = datetime.combine(moment.date() + timedelta(days=1), time(0, 0), tzinfo=moment.tzinfo)
        self.trial_ends_at = tomorrow + timedelta(days=days)
        return self

    def with_addon(self, price_id: str, quantity: int = 1) -> "SubscriptionDraftBuilder":
        self.addons.append(AddonDraft(price_id=price_id, quantity=quantity))
        return self

    def build(self) -> SubscriptionDraft:
        self._validate()
        return SubscriptionDraft(
            name=self.name,
            billable_type=self.billable_type,
            billable_id=self.billable_id,
            provider=self.provider,
            price_id=self.price_id,
            plan=self.plan,
            interval_type=self.interval_type,
            interval_count=self.interval_count,
            currency=self.currency,
            quantity=self.quantity,
            trial_ends_at=self.trial_ends_at,
            addons=tuple(self.addons),
        )

    def _validate(self) -> None:
        for name in self._REQUIRED:
            value = getattr(self, name)
            if value is None or value == "":
                raise UnableToCreateSubscriptionDraft.missing_required_property(name)
        has_slug = self.plan and self.interval_type and self.interval_count and self.currency
        if not self.price_id and not has_slug:
            raise UnableToCreateSubscriptionDraft.missing_plan_price_identifier()


__all__ = ["AddonDraft", "SubscriptionDraft", "SubscriptionDraftBuilder"]
