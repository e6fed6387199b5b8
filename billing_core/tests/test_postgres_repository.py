"""PostgreSQL repositories exercised against a recording fake connection."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

import psycopg2.extras

from billing_core.billing.repository import (
    SCHEMA_DDL,
    PostgresProductRepository,
    PostgresSubscriptionRepository,
    create_schema,
)
from billing_core.common import BillableIdentity, Money, limit
from billing_core.products import Product, ProductFeature, ProductKind, ProductPrice, ProductPriceInterval
from billing_core.subscriptions import Subscription, SubscriptionEntitlement, SubscriptionItem

NOW = datetime(2024, 4, 1, tzinfo=timezone.utc)


class FakeCursor:
    def __init__(self, connection: "FakeConnection") -> None:
        self._connection = connection
        self.closed = False

    def execute(self, query: Any, params: Any = None) -> None:
        self._connection.executed.append((query, params))

    def fetchone(self) -> Optional[dict]:
        return self._connection.rows[0] if self._connection.rows else None

    def fetchall(self) -> List[dict]:
        return list(self._connection.rows)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeConnection:
    def __init__(self, rows: Optional[List[dict]] = None) -> None:
        self.rows = rows or []
        self.executed: List[Tuple[Any, Any]] = []
        self.cursor_factories: List[Any] = []
        self.commits = 0

    def cursor(self, cursor_factory: Any = None) -> FakeCursor:
        self.cursor_factories.append(cursor_factory)
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1


def _subscription() -> Subscription:
    item = SubscriptionItem.create(
        "price_pro",
        Money.usd(1000),
        ProductPriceInterval.monthly(),
        entitlements=[SubscriptionEntitlement.grant("seats", limit(5))],
        item_id="item_a",
    ).with_period(NOW, NOW + timedelta(days=30))
    return (
        Subscription.create(
            name="default", billable=BillableIdentity.of("user", 42), provider="sync", now=NOW, subscription_id="sub_1"
        )
        .with_primary_item(item)
        .activate()
    )


def _product() -> Product:
    return (
        Product.create(kind=ProductKind.PLAN, slug="pro", name="Pro", product_id="prod_pro")
        .with_prices(ProductPrice.monthly(Money.usd(1000), price_id="price_pro"))
        .with_features(ProductFeature(key="seats", value=limit(5)))
    )


def test_save_subscription_writes_lookup_columns_and_document() -> None:
    connection = FakeConnection()
    subscription = _subscription()

    PostgresSubscriptionRepository(conn=connection).save(subscription)

    _, params = connection.executed[0]
    assert params["id"] == "sub_1"
    assert params["billable_type"] == "user"
    assert params["billable_id"] == "42"
    assert params["name"] == "default"
    assert params["status"] == "active"
    assert isinstance(params["document"], psycopg2.extras.Json)
    assert params["document"].adapted == subscription.model_dump(mode="json")
    assert connection.cursor_factories == [psycopg2.extras.RealDictCursor]
    # Borrowed connections are left to the caller to commit.
    assert connection.commits == 0


def test_find_subscription_hydrates_document() -> None:
    subscription = _subscription()
    connection = FakeConnection(rows=[{"document": subscription.model_dump(mode="json")}])
    repository = PostgresSubscriptionRepository(conn=connection)

    assert repository.find("sub_1") == subscription
    assert repository.find_for_billable(BillableIdentity.of("user", 42), "default") == subscription
    assert repository.find_all_for_billable(BillableIdentity.of("user", 42)) == [subscription]

    _, params = connection.executed[1]
    assert params == ("user", "42", "default", "active")


def test_find_by_item_id_uses_jsonb_containment() -> None:
    connection = FakeConnection()

    assert PostgresSubscriptionRepository(conn=connection).find_by_item_id("item_a") is None

    _, params = connection.executed[0]
    assert params[0].adapted == [{"id": "item_a"}]


def test_product_repository_round_trip() -> None:
    product = _product()
    connection = FakeConnection(rows=[{"document": product.model_dump(mode="json")}])
    repository = PostgresProductRepository(conn=connection, table="catalog")

    repository.save(product)
    _, params = connection.executed[0]
    assert params["price_ids"] == ["price_pro"]
    assert params["kind"] == "plan"

    assert repository.find("prod_pro") == product
    assert repository.find_by_price_id("price_pro") == product
    assert repository.find_multiple_by_price_ids(["price_pro"]) == [product]
    assert repository.all() == [product]


def test_find_multiple_with_no_ids_skips_query() -> None:
    connection = FakeConnection()

    assert PostgresProductRepository(conn=connection).find_multiple_by_price_ids([]) == []
    assert connection.executed == []


def test_schema_enforces_one_active_subscription_per_name() -> None:
    assert "CREATE UNIQUE INDEX" in SCHEMA_DDL
    assert "(billable_type, billable_id, name)" in SCHEMA_DDL
    assert "WHERE status = 'active'" in SCHEMA_DDL

    connection = FakeConnection()
    create_schema(connection)
    assert len(connection.executed) == 1
    assert connection.commits == 1
