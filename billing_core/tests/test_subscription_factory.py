from __future__ import annotations

from datetime import datetime, timezone
from typing import List

import pytest

from billing_core.billing import AddonDraft, SubscriptionDraft, SubscriptionDraftBuilder, SubscriptionFactory
from billing_core.common import Money, limit
from billing_core.errors import (
    InvalidSubscriptionDraft,
    PriceNotFound,
    ProductNotFound,
    UnableToCreateSubscriptionDraft,
)
from billing_core.products import Product, ProductFeature, ProductKind, ProductPrice, ProductPriceInterval
from billing_core.subscriptions import SubscriptionStatus

NOW = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


def _catalog() -> List[Product]:
    return [
        Product.create(kind=ProductKind.PLAN, slug="pro", name="Pro")
        .with_prices(
            ProductPrice.monthly(Money.usd(1000), price_id="pro_usd"),
            ProductPrice.monthly(Money.eur(900), price_id="pro_eur"),
            ProductPrice(id="pro_quarterly", price=Money.usd(2700), interval=ProductPriceInterval.of("month", 3)),
        )
        .with_features(
            ProductFeature(key="seats", value=limit(5), sort_order=1),
            ProductFeature(key="projects", value=limit(10), sort_order=0),
        ),
        Product.create(kind=ProductKind.ADD_ON, slug="storage", name="Storage")
        .with_prices(ProductPrice.monthly(Money.usd(300), price_id="storage_usd"))
        .with_features(ProductFeature(key="storage_gb", value=limit(100))),
    ]


def _draft(**overrides) -> SubscriptionDraft:
    values = dict(name="default", billable_type="user", billable_id=1, provider="sync", price_id="pro_usd")
    values.update(overrides)
    return SubscriptionDraft(**values)


def test_builds_incomplete_subscription_from_price_id() -> None:
    subscription = SubscriptionFactory().from_catalog(
        _catalog(), _draft(quantity=2, addons=(AddonDraft("storage_usd", 3),)), now=NOW
    )

    assert subscription.status == SubscriptionStatus.INCOMPLETE
    assert subscription.created_at == NOW
    assert subscription.primary_item.price_id == "pro_usd"
    assert subscription.primary_item.quantity == 2
    assert [grant.key for grant in subscription.primary_item.entitlements] == ["projects", "seats"]
    addon = subscription.addon_items[0]
    assert (addon.price_id, addon.quantity) == ("storage_usd", 3)
    assert addon.entitlements[0].value == limit(100)
    assert all(not item.has_period for item in subscription.items)


def test_builds_from_slug_interval_and_currency() -> None:
    draft = _draft(price_id=None, plan="pro", interval_type="month", interval_count=3, currency="usd")
    subscription = SubscriptionFactory().from_catalog(_catalog(), draft, now=NOW)

    assert subscription.primary_item.price_id == "pro_quarterly"


def test_slug_lookup_skips_products_without_matching_price() -> None:
    legacy = (
        Product.create(kind=ProductKind.PLAN, slug="team", name="Team (legacy)")
        .with_prices(ProductPrice.monthly(Money.usd(500), price_id="team_legacy_usd"))
    )
    current = (
        Product.create(kind=ProductKind.PLAN, slug="team", name="Team")
        .with_prices(ProductPrice.yearly(Money.usd(5000), price_id="team_yearly_usd"))
    )
    draft = _draft(price_id=None, plan="team", interval_type="year", currency="usd")

    subscription = SubscriptionFactory().from_catalog([legacy, current], draft, now=NOW)

    assert subscription.primary_item.price_id == "team_yearly_usd"


def test_unknown_prices_and_products() -> None:
    factory = SubscriptionFactory()

    with pytest.raises(ProductNotFound):
        factory.from_catalog(_catalog(), _draft(price_id="missing"))
    with pytest.raises(ProductNotFound):
        factory.from_catalog(_catalog(), _draft(addons=(AddonDraft("missing"),)))
    with pytest.raises(ProductNotFound):
        factory.from_catalog(
            _catalog(), _draft(price_id=None, plan="team", interval_type="month", currency="usd")
        )
    with pytest.raises(PriceNotFound):
        factory.from_catalog(
            _catalog(), _draft(price_id=None, plan="pro", interval_type="year", currency="usd")
        )


def test_primary_product_must_be_a_plan() -> None:
    with pytest.raises(InvalidSubscriptionDraft):
        SubscriptionFactory().from_catalog(_catalog(), _draft(price_id="storage_usd"))


def test_addon_currency_must_match_plan() -> None:
    with pytest.raises(InvalidSubscriptionDraft) as exc:
        SubscriptionFactory().from_catalog(_catalog(), _draft(price_id="pro_eur", addons=(AddonDraft("storage_usd"),)))

    assert exc.value.payload["price_id"] == "storage_usd"


def test_draft_without_plan_identifier() -> None:
    with pytest.raises(UnableToCreateSubscriptionDraft):
        SubscriptionFactory().from_catalog(_catalog(), _draft(price_id=None))


def test_builder_requires_core_properties() -> None:
    with pytest.raises(UnableToCreateSubscriptionDraft) as exc:
        SubscriptionDraftBuilder().with_billable("user", 1).with_provider("sync").build()
    assert exc.value.payload["property"] == "name"

    with pytest.raises(UnableToCreateSubscriptionDraft) as exc:
        SubscriptionDraftBuilder().with_name("default").with_billable("user", 1).with_plan_price_id("p").build()
    assert exc.value.payload["property"] == "provider"

    with pytest.raises(UnableToCreateSubscriptionDraft):
        SubscriptionDraftBuilder().with_name("default").with_billable("user", 1).with_provider("sync").build()

    with pytest.raises(UnableToCreateSubscriptionDraft):
        (
            SubscriptionDraftBuilder()
            .with_name("default")
            .with_billable("user", 1)
            .with_provider("sync")
            .with_plan("pro", "month", 1, "")
            .build()
        )


def test_builder_produces_draft() -> None:
    draft = (
        SubscriptionDraftBuilder()
        .with_name("default")
        .with_billable("team", "t_1")
        .with_provider("sync")
        .with_plan("pro", "month", 1, "usd")
        .with_quantity(4)
        .with_addon("storage_usd", 2)
        .with_trial_days(14, now=NOW)
        .build()
    )

    assert draft.plan == "pro"
    assert draft.identifies_plan_by_slug and not draft.identifies_plan_by_price
    assert draft.quantity == 4
    assert draft.addons == (AddonDraft("storage_usd", 2),)
    assert draft.addon_price_ids() == ["storage_usd"]
    assert draft.trial_ends_at == datetime(2024, 1, 30, tzinfo=timezone.utc)


def test_builder_trial_end_from_datetime() -> None:
    trial_end = datetime(2024, 3, 1)
    draft = (
        SubscriptionDraftBuilder()
        .with_name("default")
        .with_billable("user", 1)
        .with_provider("sync")
        .with_plan_price_id("pro_usd")
        .with_trial_ends_at(trial_end)
        .build()
    )

    assert draft.trial_ends_at == datetime(2024, 3, 1, tzinfo=timezone.utc)
    subscription = SubscriptionFactory().from_catalog(_catalog(), draft, now=NOW)
    assert subscription.is_in_trial(NOW)
