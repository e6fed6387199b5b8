"""Application wiring for the billing manager."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Tuple

import psycopg2

from .billing import (
    BillableDetailsResolver,
    BillingManager,
    InMemoryProductRepository,
    InMemorySubscriptionRepository,
    ProductRepository,
    SubscriptionDraftBuilder,
    SubscriptionRepository,
)
from .billing.repository import PostgresProductRepository, PostgresSubscriptionRepository, create_schema
from .common.billable import BillableDetails, BillableIdentity
from .config import BillingConfig, load_billing_config
from .providers import InMemoryBillingProviderRegistry, SynchronousBillingProvider

logger = logging.getLogger("billing")


def configure_logging(level: str = "INFO") -> None:
    logging.getLogger("billing").setLevel(level)
    logging.getLogger("billing_core").setLevel(level)


class LoggingBillableDetailsResolver(BillableDetailsResolver):
    """Resolver used until the embedding application registers a real one."""

    def resolve(self, billable: BillableIdentity) -> Optional[BillableDetails]:
        logger.debug("No billable details source configured for %s", billable)
        return None


def build_repositories(config: BillingConfig) -> Tuple[ProductRepository, SubscriptionRepository]:
    if not config.uses_database:
        logger.info("BILLING_DATABASE_URL not set; using in-memory billing repositories")
        return InMemoryProductRepository(), InMemorySubscriptionRepository()

    if config.create_schema:
        conn = psycopg2.connect(config.database_url)
        try:
            create_schema(
                conn,
                subscriptions_table=config.subscriptions_table,
                products_table=config.products_table,
            )
        finally:
            conn.close()

    products = PostgresProductRepository(dsn=config.database_url, table=config.products_table)
    subscriptions = PostgresSubscriptionRepository(dsn=config.database_url, table=config.subscriptions_table)
    return products, subscriptions


def build_billing_manager(config: BillingConfig) -> BillingManager:
    configure_logging(config.log_level)
    products, subscriptions = build_repositories(config)
    registry = InMemoryBillingProviderRegistry()
    registry.register(config.default_provider, SynchronousBillingProvider())
    return BillingManager(
        products=products,
        subscriptions=subscriptions,
        providers=registry,
        billable_details=LoggingBillableDetailsResolver(),
    )


@lru_cache(maxsize=1)
def get_billing_config() -> BillingConfig:
    return load_billing_config()


@lru_cache(maxsize=1)
def get_billing_manager() -> BillingManager:
    return build_billing_manager(get_billing_config())


def new_draft_builder(config: Optional[BillingConfig] = None) -> SubscriptionDraftBuilder:
    """Draft builder preset with the default provider and trial length."""

    config = config or get_billing_config()
    builder = SubscriptionDraftBuilder().with_provider(config.default_provider)
    if config.default_trial_days:
        builder = builder.with_trial_days(config.default_trial_days)
    return builder


__all__ = [
    "LoggingBillableDetailsResolver",
    "build_billing_manager",
    "build_repositories",
    "configure_logging",
    "get_billing_config",
    "get_billing_manager",
    "new_draft_builder",
]
