"""Merge time-scoped entitlement grants into one value per feature."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, Set

from ..common.dates import ensure_utc
from ..subscriptions.models import Subscription, SubscriptionEntitlement
from .models import EffectiveEntitlement

logger = logging.getLogger(__name__)


class EntitlementResolver:
    """Stateless resolution of grants at a given instant.

    Grants are visited in input order. Grants whose window does not contain
    ``at`` are skipped; the first active grant of a key seeds its effective
    value and later ones are combined into it. Limits from separate grants
    add up and a grant seen twice (same id) counts once. Mixing flag and
    limit grants for one key raises :class:`~billing_core.errors.FeatureValueMismatch`.
    """

    def resolve(
        self, grants: Iterable[SubscriptionEntitlement], at: datetime
    ) -> Dict[str, EffectiveEntitlement]:
        moment = ensure_utc(at)
        effective: Dict[str, EffectiveEntitlement] = {}
        seen: Set[str] = set()
        for grant in grants:
            if not grant.is_active_at(moment):
                logger.debug("Skipping grant %s for %s outside its window", grant.id, grant.key)
                continue
            if grant.id in seen:
                logger.debug("Skipping repeated grant %s for %s", grant.id, grant.key)
                continue
            seen.add(grant.id)
            current = effective.get(grant.key)
            if current is None:
                effective[grant.key] = EffectiveEntitlement.from_grant(grant)
            else:
                effective[grant.key] = current.combined_with(grant)
        return effective

    def resolve_for(self, subscription: Subscription, at: datetime) -> Dict[str, EffectiveEntitlement]:
        return self.resolve(subscription.entitlements(), at)


__all__ = ["EntitlementResolver"]
