"""Entitlement resolution and feature checks."""

from .checker import EntitlementChecker, EntitlementCheckerFactory, UsageSource
from .models import EffectiveEntitlement
from .resolver import EntitlementResolver

__all__ = [
    "EffectiveEntitlement",
    "EntitlementChecker",
    "EntitlementCheckerFactory",
    "EntitlementResolver",
    "UsageSource",
]
