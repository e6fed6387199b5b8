"""Derived entitlement values."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

from ..common.features import FeatureValue, FlagValue, LimitValue
from ..subscriptions.models import SubscriptionEntitlement


@dataclass(frozen=True)
class EffectiveEntitlement:
    """Merged value of every active grant for one feature key."""

    key: str
    value: FeatureValue

    @classmethod
    def from_grant(cls, grant: SubscriptionEntitlement) -> "EffectiveEntitlement":
        return cls(key=grant.key, value=grant.value)

    def combined_with(self, grant: SubscriptionEntitlement) -> "EffectiveEntitlement":
        """Fold another grant in; limits from separate grants add up."""

        if isinstance(self.value, LimitValue):
            merged = self.value.plus(grant.value)
        else:
            merged = self.value.combine(grant.value)
        if merged is self.value:
            return self
        return EffectiveEntitlement(key=self.key, value=merged)

    @property
    def is_flag(self) -> bool:
        return isinstance(self.value, FlagValue)

    @property
    def is_limit(self) -> bool:
        return isinstance(self.value, LimitValue)

    def to_dict(self) -> Dict[str, Union[str, int, bool]]:
        """Serialize for logging or API payloads."""

        return {"key": self.key, "kind": self.value.kind, "value": self.value.value}


__all__ = ["EffectiveEntitlement"]
