"""PostgreSQL persistence for subscriptions and catalog products.

Each aggregate is stored as its canonical JSON document in a JSONB column,
alongside the handful of scalar columns needed for lookups.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

import psycopg2
import psycopg2.extras
from psycopg2 import sql
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor

from ..common.billable import BillableIdentity
from ..products.models import Product
from ..subscriptions.models import Subscription, SubscriptionStatus
from .service import ProductRepository, SubscriptionRepository

# The partial unique index serializes concurrent creates for the same
# billable and logical name: a second active row fails on insert.
SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS {subscriptions} (
    id TEXT PRIMARY KEY,
    billable_type TEXT NOT NULL,
    billable_id TEXT NOT NULL,
    name TEXT NOT NULL,
    provider TEXT NOT NULL,
    status TEXT NOT NULL,
    document JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS {subscriptions_active_index}
    ON {subscriptions} (billable_type, billable_id, name)
    WHERE status = 'active';
CREATE TABLE IF NOT EXISTS {products} (
    id TEXT PRIMARY KEY,
    slug TEXT NOT NULL,
    kind TEXT NOT NULL,
    price_ids TEXT[] NOT NULL DEFAULT '{{}}',
    document JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def schema_statements(subscriptions_table: str, products_table: str) -> sql.Composed:
    return sql.SQL(SCHEMA_DDL).format(
        subscriptions=sql.Identifier(subscriptions_table),
        subscriptions_active_index=sql.Identifier(f"{subscriptions_table}_active_name_idx"),
        products=sql.Identifier(products_table),
    )


@contextmanager
def managed_connection(conn: Optional[PgConnection] = None, dsn: Optional[str] = None):
    """Yield ``(connection, managed)``; only self-opened connections are committed and closed here."""

    if conn is not None:
        yield conn, False
        return

    if not dsn:
        raise RuntimeError("BILLING_DATABASE_URL is not configured")
    connection = psycopg2.connect(dsn)
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


def _row_to_subscription(row: dict) -> Subscription:
    return Subscription.model_validate(row["document"])


def _row_to_product(row: dict) -> Product:
    return Product.model_validate(row["document"])


class _PostgresRepository:
    def __init__(self, *, conn: Optional[PgConnection] = None, dsn: Optional[str] = None) -> None:
        self._conn = conn
        self._dsn = dsn

    @contextmanager
    def _cursor(self) -> Iterator[PgCursor]:
        with managed_connection(self._conn, self._dsn) as (connection, managed):
            cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                yield cursor
                if managed:
                    connection.commit()
            except Exception:
                if managed:
                    connection.rollback()
                raise
            finally:
                cursor.close()


class PostgresSubscriptionRepository(_PostgresRepository, SubscriptionRepository):
    def __init__(
        self,
        *,
        conn: Optional[PgConnection] = None,
        dsn: Optional[str] = None,
        table: str = "billing_subscriptions",
    ) -> None:
        super().__init__(conn=conn, dsn=dsn)
        self._table = sql.Identifier(table)

    def _select(self, where: str) -> sql.Composed:
        return sql.SQL("SELECT document FROM {table} WHERE " + where).format(table=self._table)

    def find(self, subscription_id: str) -> Optional[Subscription]:
        with self._cursor() as cursor:
            cursor.execute(self._select("id = %s LIMIT 1"), (subscription_id,))
            row = cursor.fetchone()
            return _row_to_subscription(row) if row else None

    def find_by_item_id(self, item_id: str) -> Optional[Subscription]:
        with self._cursor() as cursor:
            cursor.execute(
                self._select("document -> 'items' @> %s LIMIT 1"),
                (psycopg2.extras.Json([{"id": item_id}]),),
            )
            row = cursor.fetchone()
            return _row_to_subscription(row) if row else None

    def find_for_billable(self, billable: BillableIdentity, name: str) -> Optional[Subscription]:
        with self._cursor() as cursor:
            cursor.execute(
                self._select(
                    "billable_type = %s AND billable_id = %s AND name = %s "
                    "ORDER BY (status = %s) DESC, created_at DESC LIMIT 1"
                ),
                (*billable.lookup_key, name, SubscriptionStatus.ACTIVE.value),
            )
            row = cursor.fetchone()
            return _row_to_subscription(row) if row else None

    def find_all_for_billable(self, billable: BillableIdentity) -> List[Subscription]:
        with self._cursor() as cursor:
            cursor.execute(
                self._select("billable_type = %s AND billable_id = %s ORDER BY created_at"),
                billable.lookup_key,
            )
            return [_row_to_subscription(row) for row in cursor.fetchall()]

    def save(self, subscription: Subscription) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                sql.SQL(
                    """
                    INSERT INTO {table} (
                        id, billable_type, billable_id, name, provider, status, document, created_at
                    )
                    VALUES (%(id)s, %(billable_type)s, %(billable_id)s, %(name)s, %(provider)s,
                            %(status)s, %(document)s, %(created_at)s)
                    ON CONFLICT (id) DO UPDATE SET
                        billable_type = EXCLUDED.billable_type,
                        billable_id = EXCLUDED.billable_id,
                        name = EXCLUDED.name,
                        provider = EXCLUDED.provider,
                        status = EXCLUDED.status,
                        document = EXCLUDED.document,
                        updated_at = NOW()
                    """
                ).format(table=self._table),
                {
                    "id": subscription.id,
                    "billable_type": subscription.billable.type,
                    "billable_id": str(subscription.billable.id),
                    "name": subscription.name,
                    "provider": subscription.provider,
                    "status": subscription.status.value,
                    "document": psycopg2.extras.Json(subscription.model_dump(mode="json")),
                    "created_at": subscription.created_at,
                },
            )


class PostgresProductRepository(_PostgresRepository, ProductRepository):
    def __init__(
        self,
        *,
        conn: Optional[PgConnection] = None,
        dsn: Optional[str] = None,
        table: str = "billing_products",
    ) -> None:
        super().__init__(conn=conn, dsn=dsn)
        self._table = sql.Identifier(table)

    def _select(self, where: str) -> sql.Composed:
        return sql.SQL("SELECT document FROM {table} WHERE " + where).format(table=self._table)

    def all(self) -> List[Product]:
        with self._cursor() as cursor:
            cursor.execute(sql.SQL("SELECT document FROM {table} ORDER BY slug").format(table=self._table))
            return [_row_to_product(row) for row in cursor.fetchall()]

    def find(self, product_id: str) -> Optional[Product]:
        with self._cursor() as cursor:
            cursor.execute(self._select("id = %s LIMIT 1"), (product_id,))
            row = cursor.fetchone()
            return _row_to_product(row) if row else None

    def find_by_price_id(self, price_id: str) -> Optional[Product]:
        with self._cursor() as cursor:
            cursor.execute(self._select("%s = ANY(price_ids) LIMIT 1"), (price_id,))
            row = cursor.fetchone()
            return _row_to_product(row) if row else None

    def find_multiple_by_price_ids(self, price_ids: Iterable[str]) -> List[Product]:
        wanted = list(price_ids)
        if not wanted:
            return []
        with self._cursor() as cursor:
            cursor.execute(self._select("price_ids && %s::text[]"), (wanted,))
            return [_row_to_product(row) for row in cursor.fetchall()]

    def save(self, product: Product) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                sql.SQL(
                    """
                    INSERT INTO {table} (id, slug, kind, price_ids, document)
                    VALUES (%(id)s, %(slug)s, %(kind)s, %(price_ids)s, %(document)s)
                    ON CONFLICT (id) DO UPDATE SET
                        slug = EXCLUDED.slug,
                        kind = EXCLUDED.kind,
                        price_ids = EXCLUDED.price_ids,
                        document = EXCLUDED.document,
                        updated_at = NOW()
                    """
                ).format(table=self._table),
                {
                    "id": product.id,
                    "slug": product.slug,
                    "kind": product.kind.value,
                    "price_ids": [price.id for price in product.prices],
                    "document": psycopg2.extras.Json(product.model_dump(mode="json")),
                },
            )


def create_schema(
    conn: PgConnection,
    *,
    subscriptions_table: str = "billing_subscriptions",
    products_table: str = "billing_products",
) -> None:
    with conn.cursor() as cursor:
        cursor.execute(schema_statements(subscriptions_table, products_table))
    conn.commit()


__all__ = [
    "PostgresProductRepository",
    "PostgresSubscriptionRepository",
    "SCHEMA_DDL",
    "create_schema",
    "managed_connection",
    "schema_statements",
]
