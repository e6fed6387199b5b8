"""Feature keys and the flag/limit feature value union."""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StringConstraints, TypeAdapter

from ..errors import FeatureValueMismatch

FeatureKey = Annotated[str, StringConstraints(pattern=r"^[a-z0-9_]+$")]
FeatureUnit = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

GENERIC_UNIT = "unit"
UNLIMITED = "unlimited"


class FeatureKind(str, Enum):
    """How a feature value is interpreted."""

    FLAG = "flag"
    LIMIT = "limit"


class FlagValue(BaseModel):
    """On/off feature."""

    kind: Literal["flag"] = "flag"
    value: StrictBool

    model_config = ConfigDict(frozen=True)

    @property
    def is_on(self) -> bool:
        return self.value

    def combine(self, other: "FeatureValue") -> "FeatureValue":
        """Merge two grants of the same feature; the most permissive wins."""

        if not isinstance(other, FlagValue):
            raise FeatureValueMismatch(
                "Cannot combine feature values of different kinds.",
                detail={"kinds": [self.kind, other.kind]},
            )
        if self.value == other.value:
            return self
        return FlagValue(value=True)


class LimitValue(BaseModel):
    """Numeric allowance, or ``"unlimited"``."""

    kind: Literal["limit"] = "limit"
    value: Union[Literal["unlimited"], Annotated[StrictInt, Field(ge=0)]]

    model_config = ConfigDict(frozen=True)

    @property
    def is_unlimited(self) -> bool:
        return self.value == UNLIMITED

    def allows(self, total: int) -> bool:
        """Return whether ``total`` units stay within the limit."""

        if self.is_unlimited:
            return True
        return total <= self.value

    def combine(self, other: "FeatureValue") -> "FeatureValue":
        """Merge two values of the same feature: equal values are kept, otherwise :meth:`plus`."""

        if isinstance(other, LimitValue) and self.value == other.value:
            return self
        return self.plus(other)

    def plus(self, other: "FeatureValue") -> "LimitValue":
        """Add the allowance of another grant; unlimited absorbs."""

        if not isinstance(other, LimitValue):
            raise FeatureValueMismatch(
                "Cannot combine feature values of different kinds.",
                detail={"kinds": [self.kind, other.kind]},
            )
        if self.is_unlimited or other.value == 0:
            return self
        if other.is_unlimited or self.value == 0:
            return other
        return LimitValue(value=self.value + other.value)


FeatureValue = Annotated[Union[FlagValue, LimitValue], Field(discriminator="kind")]

_feature_value_adapter: TypeAdapter[FeatureValue] = TypeAdapter(FeatureValue)
_feature_key_adapter: TypeAdapter[str] = TypeAdapter(FeatureKey)


def parse_feature_value(data: Any) -> FeatureValue:
    """Build a feature value from its canonical ``{"kind", "value"}`` mapping."""

    return _feature_value_adapter.validate_python(data)


def feature_key(value: str) -> str:
    """Validate a feature key outside of a model."""

    return _feature_key_adapter.validate_python(value)


def flag_on() -> FlagValue:
    return FlagValue(value=True)


def flag_off() -> FlagValue:
    return FlagValue(value=False)


def limit(value: int) -> LimitValue:
    return LimitValue(value=value)


def unlimited() -> LimitValue:
    return LimitValue(value=UNLIMITED)


def combine(first: FeatureValue, second: FeatureValue) -> FeatureValue:
    return first.combine(second)


__all__ = [
    "FeatureKey",
    "FeatureKind",
    "FeatureUnit",
    "FeatureValue",
    "FlagValue",
    "GENERIC_UNIT",
    "LimitValue",
    "UNLIMITED",
    "combine",
    "feature_key",
    "flag_off",
    "flag_on",
    "limit",
    "parse_feature_value",
    "unlimited",
]
