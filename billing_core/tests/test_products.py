from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from billing_core.common import Money, flag_on, limit
from billing_core.errors import PriceNotFound, SubscriptionInvariantViolation
from billing_core.products import (
    IntervalUnit,
    Product,
    ProductFeature,
    ProductKind,
    ProductPrice,
    ProductPriceInterval,
)


def _pro_plan() -> Product:
    return (
        Product.create(kind=ProductKind.PLAN, slug="pro", name="Pro", product_id="prod_pro")
        .with_prices(
            ProductPrice.monthly(Money.usd(1000), price_id="price_pro_monthly"),
            ProductPrice.yearly(Money.usd(10000), price_id="price_pro_yearly"),
        )
        .with_features(
            ProductFeature(key="seats", value=limit(5), sort_order=2),
            ProductFeature(key="sso", value=flag_on(), sort_order=1),
        )
    )


def test_create_starts_empty_and_with_methods_replace_wholesale() -> None:
    product = Product.create(kind=ProductKind.PLAN, slug="basic", name="Basic")
    assert product.prices == ()
    assert product.features == ()

    priced = product.with_prices(ProductPrice.monthly(Money.usd(500), price_id="p1"))
    repriced = priced.with_prices(ProductPrice.monthly(Money.usd(700), price_id="p2"))

    assert product.prices == ()
    assert [price.id for price in priced.prices] == ["p1"]
    assert [price.id for price in repriced.prices] == ["p2"]


def test_price_lookup() -> None:
    product = _pro_plan()

    assert product.has_price("price_pro_monthly")
    assert not product.has_price("missing")
    assert product.find_price("price_pro_yearly").price == Money.usd(10000)
    with pytest.raises(PriceNotFound):
        product.find_price("missing")

    monthly = product.find_price_for(ProductPriceInterval.monthly(), "usd")
    assert monthly is not None and monthly.id == "price_pro_monthly"
    assert product.find_price_for(ProductPriceInterval.monthly(), "eur") is None
    assert product.find_price_for(ProductPriceInterval.of("month", 3), "usd") is None


def test_features_sorted_by_sort_order() -> None:
    assert [feature.key for feature in _pro_plan().sorted_features()] == ["sso", "seats"]


def test_duplicate_prices_or_features_are_rejected() -> None:
    product = Product.create(kind=ProductKind.ADD_ON, slug="extra_seats", name="Extra seats")

    with pytest.raises(SubscriptionInvariantViolation):
        product.with_prices(
            ProductPrice.monthly(Money.usd(100), price_id="dup"),
            ProductPrice.yearly(Money.usd(1000), price_id="dup"),
        )
    with pytest.raises(SubscriptionInvariantViolation):
        product.with_features(
            ProductFeature(key="seats", value=limit(1)),
            ProductFeature(key="seats", value=limit(2)),
        )


def test_slug_format() -> None:
    with pytest.raises(ValidationError):
        Product.create(kind=ProductKind.PLAN, slug="Pro Plan", name="Pro")


@pytest.mark.parametrize(
    "interval, start, expected",
    [
        (ProductPriceInterval.of("day", 3), datetime(2024, 1, 30), datetime(2024, 2, 2)),
        (ProductPriceInterval.of("week", 2), datetime(2024, 1, 1), datetime(2024, 1, 15)),
        (ProductPriceInterval.monthly(), datetime(2024, 1, 31), datetime(2024, 2, 29)),
        (ProductPriceInterval.of("month", 3), datetime(2024, 11, 15), datetime(2025, 2, 15)),
        (ProductPriceInterval.yearly(), datetime(2024, 2, 29), datetime(2025, 2, 28)),
    ],
)
def test_interval_advance(interval: ProductPriceInterval, start: datetime, expected: datetime) -> None:
    assert interval.advance(start) == expected.replace(tzinfo=timezone.utc)


def test_interval_count_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        ProductPriceInterval(type=IntervalUnit.MONTH, count=0)


def test_product_round_trips_through_canonical_form() -> None:
    product = _pro_plan()
    data = product.model_dump(mode="json")

    assert data["kind"] == "plan"
    assert data["prices"][0]["interval"] == {"type": "month", "count": 1}
    assert data["features"][0]["value"] == {"kind": "limit", "value": 5}
    assert Product.model_validate(data) == product
