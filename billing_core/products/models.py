"""Catalog model: products, their prices and the features they grant."""
from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints, model_validator

from ..common.dates import ensure_utc
from ..common.features import FeatureKey, FeatureUnit, FeatureValue
from ..common.ids import Identifier, new_id
from ..common.money import Money
from ..errors import PriceNotFound, SubscriptionInvariantViolation

ProductSlug = Annotated[str, StringConstraints(pattern=r"^[a-z0-9_]+$")]


class ProductKind(str, Enum):
    """Whether a product is a base plan or something bolted onto one."""

    PLAN = "plan"
    ADD_ON = "addon"


class IntervalUnit(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class ProductPriceInterval(BaseModel):
    """Billing cadence, e.g. every 3 months."""

    type: IntervalUnit
    count: StrictInt = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, unit: str, count: int = 1) -> "ProductPriceInterval":
        return cls(type=IntervalUnit(unit), count=count)

    @classmethod
    def monthly(cls) -> "ProductPriceInterval":
        return cls(type=IntervalUnit.MONTH, count=1)

    @classmethod
    def yearly(cls) -> "ProductPriceInterval":
        return cls(type=IntervalUnit.YEAR, count=1)

    def advance(self, start: datetime) -> datetime:
        """Return the end of a billing period beginning at ``start``."""

        start = ensure_utc(start)
        if self.type == IntervalUnit.DAY:
            return start + timedelta(days=self.count)
        if self.type == IntervalUnit.WEEK:
            return start + timedelta(weeks=self.count)
        if self.type == IntervalUnit.MONTH:
            return _add_months(start, self.count)
        return _add_months(start, 12 * self.count)


class ProductPrice(BaseModel):
    id: Identifier = Field(default_factory=new_id)
    price: Money
    interval: ProductPriceInterval

    model_config = ConfigDict(frozen=True)

    @classmethod
    def monthly(cls, price: Money, *, price_id: Optional[str] = None) -> "ProductPrice":
        return cls(id=price_id or new_id(), price=price, interval=ProductPriceInterval.monthly())

    @classmethod
    def yearly(cls, price: Money, *, price_id: Optional[str] = None) -> "ProductPrice":
        return cls(id=price_id or new_id(), price=price, interval=ProductPriceInterval.yearly())

    def matches(self, interval: ProductPriceInterval, currency: str) -> bool:
        return self.interval == interval and self.price.currency == currency


class ProductFeature(BaseModel):
    """Entitlement a product grants to every subscription item built from it."""

    key: FeatureKey
    value: FeatureValue
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[FeatureUnit] = None
    sort_order: int = 0

    model_config = ConfigDict(frozen=True)


class Product(BaseModel):
    """Purchasable plan or add-on.

    Prices and features are set once per instance; ``with_prices`` and
    ``with_features`` return a new product with the collection replaced.
    """

    id: Identifier = Field(default_factory=new_id)
    kind: ProductKind
    slug: ProductSlug
    name: str
    description: str = ""
    prices: Tuple[ProductPrice, ...] = ()
    features: Tuple[ProductFeature, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validate_collections(self) -> "Product":
        price_ids = [price.id for price in self.prices]
        if len(set(price_ids)) != len(price_ids):
            raise SubscriptionInvariantViolation(
                "Product price ids must be unique.", detail={"product_id": self.id}
            )
        feature_keys = [feature.key for feature in self.features]
        if len(set(feature_keys)) != len(feature_keys):
            raise SubscriptionInvariantViolation(
                "Product feature keys must be unique.", detail={"product_id": self.id}
            )
        return self

    @classmethod
    def create(
        cls,
        *,
        kind: ProductKind,
        slug: str,
        name: str,
        description: str = "",
        product_id: Optional[str] = None,
    ) -> "Product":
        return cls(id=product_id or new_id(), kind=kind, slug=slug, name=name, description=description)

    def with_prices(self, *prices: ProductPrice) -> "Product":
        return type(self)(**{**dict(self), "prices": tuple(prices)})

    def with_features(self, *features: ProductFeature) -> "Product":
        return type(self)(**{**dict(self), "features": tuple(features)})

    @property
    def is_plan(self) -> bool:
        return self.kind == ProductKind.PLAN

    def has_price(self, price_id: str) -> bool:
        return any(price.id == price_id for price in self.prices)

    def find_price(self, price_id: str) -> ProductPrice:
        for price in self.prices:
            if price.id == price_id:
                return price
        raise PriceNotFound(price_id)

    def find_price_for(self, interval: ProductPriceInterval, currency: str) -> Optional[ProductPrice]:
        for price in self.prices:
            if price.matches(interval, currency):
                return price
        return None

    def sorted_features(self) -> Tuple[ProductFeature, ...]:
        return tuple(sorted(self.features, key=lambda feature: feature.sort_order))


def find_product_by_price(products: Iterable[Product], price_id: str) -> Optional[Product]:
    for product in products:
        if product.has_price(price_id):
            return product
    return None


__all__ = [
    "IntervalUnit",
    "Product",
    "ProductFeature",
    "ProductKind",
    "ProductPrice",
    "ProductPriceInterval",
    "ProductSlug",
    "find_product_by_price",
]
