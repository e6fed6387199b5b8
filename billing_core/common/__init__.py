"""Value types shared by the catalog, subscriptions and entitlement engine."""

from .billable import Address, BillableDetails, BillableIdentity
from .dates import DateRange, UtcDatetime, current_time, ensure_utc, utcnow
from .features import (
    GENERIC_UNIT,
    UNLIMITED,
    FeatureKey,
    FeatureKind,
    FeatureUnit,
    FeatureValue,
    FlagValue,
    LimitValue,
    combine,
    feature_key,
    flag_off,
    flag_on,
    limit,
    parse_feature_value,
    unlimited,
)
from .ids import Identifier, new_id
from .money import Currency, Money

__all__ = [
    "Address",
    "BillableDetails",
    "BillableIdentity",
    "Currency",
    "DateRange",
    "FeatureKey",
    "FeatureKind",
    "FeatureUnit",
    "FeatureValue",
    "FlagValue",
    "GENERIC_UNIT",
    "Identifier",
    "LimitValue",
    "Money",
    "UNLIMITED",
    "UtcDatetime",
    "combine",
    "current_time",
    "ensure_utc",
    "feature_key",
    "flag_off",
    "flag_on",
    "limit",
    "new_id",
    "parse_feature_value",
    "unlimited",
    "utcnow",
]
