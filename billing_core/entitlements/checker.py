"""Feature checks against resolved entitlements."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional, Protocol, runtime_checkable

from ..common.dates import current_time
from ..common.features import FeatureValue, FlagValue, LimitValue
from ..errors import EntitlementDenied
from ..subscriptions.models import Subscription
from .models import EffectiveEntitlement
from .resolver import EntitlementResolver

logger = logging.getLogger(__name__)


@runtime_checkable
class UsageSource(Protocol):
    """Supplies how much of a limited feature a subscription already consumes."""

    def current_usage(self, subscription_id: str, key: str) -> Optional[int]:
        ...


class EntitlementChecker:
    """Answers "may this subscription use feature X?" for a resolved snapshot."""

    def __init__(
        self,
        effective: Mapping[str, EffectiveEntitlement],
        usage_source: Optional[UsageSource] = None,
        subscription_id: Optional[str] = None,
    ) -> None:
        self._effective = dict(effective)
        self._usage_source = usage_source
        self._subscription_id = subscription_id

    @property
    def effective(self) -> Mapping[str, EffectiveEntitlement]:
        return dict(self._effective)

    def value_of(self, key: str) -> Optional[FeatureValue]:
        entitlement = self._effective.get(key)
        return entitlement.value if entitlement is not None else None

    def current_usage(self, key: str) -> int:
        if self._usage_source is None or self._subscription_id is None:
            return 0
        usage = self._usage_source.current_usage(self._subscription_id, key)
        return usage if usage is not None else 0

    def can_use(self, key: str, amount: int = 1) -> bool:
        value = self.value_of(key)
        if value is None:
            logger.debug("No entitlement for %s", key)
            return False
        if isinstance(value, FlagValue):
            return value.is_on
        if isinstance(value, LimitValue):
            if value.is_unlimited:
                return True
            return value.allows(self.current_usage(key) + amount)
        raise TypeError(f"Unsupported feature value {value!r}")

    def require(self, key: str, amount: int = 1, *, message: Optional[str] = None) -> None:
        """Ensure the feature may be used before proceeding.

        Parameters
        ----------
        key:
            Feature key that must be granted.
        amount:
            Units about to be consumed; only meaningful for limit features.
        message:
            Optional human-friendly message. Defaults to one naming the key.
        """

        if self.can_use(key, amount):
            return
        raise EntitlementDenied(
            message or f"Entitlement '{key}' is required.",
            detail={"missing_entitlement": key, "amount": amount},
        )


class EntitlementCheckerFactory:
    def __init__(
        self,
        resolver: Optional[EntitlementResolver] = None,
        usage_source: Optional[UsageSource] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._resolver = resolver or EntitlementResolver()
        self._usage_source = usage_source
        self._clock = clock

    def for_subscription(self, subscription: Subscription, at: Optional[datetime] = None) -> EntitlementChecker:
        moment = at if at is not None else current_time(self._clock)
        effective = self._resolver.resolve_for(subscription, moment)
        return EntitlementChecker(effective, self._usage_source, subscription.id)


__all__ = ["EntitlementChecker", "EntitlementCheckerFactory", "UsageSource"]
