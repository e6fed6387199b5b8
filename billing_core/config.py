"""Billing configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from dotenv import load_dotenv

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class BillingConfig:
    """Configuration for the billing core wiring."""

    default_provider: str
    database_url: Optional[str]
    subscriptions_table: str
    products_table: str
    default_trial_days: int
    log_level: str
    create_schema: bool = False

    @property
    def uses_database(self) -> bool:
        return bool(self.database_url)


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def load_billing_config(env: Optional[Mapping[str, str]] = None) -> BillingConfig:
    """Load :class:`BillingConfig` from environment variables.

    Without an explicit mapping, a ``.env`` file is loaded first; variables
    already present in the process environment take precedence.
    """

    if env is None:
        load_dotenv()
        env_mapping: Mapping[str, str] = os.environ
    else:
        env_mapping = env

    default_provider = (env_mapping.get("BILLING_DEFAULT_PROVIDER") or "sync").strip() or "sync"
    database_url = (env_mapping.get("BILLING_DATABASE_URL") or "").strip() or None
    subscriptions_table = env_mapping.get("BILLING_SUBSCRIPTIONS_TABLE") or "billing_subscriptions"
    products_table = env_mapping.get("BILLING_PRODUCTS_TABLE") or "billing_products"
    default_trial_days = max(0, _to_int(env_mapping.get("BILLING_DEFAULT_TRIAL_DAYS"), default=0))

    create_schema = _to_bool(env_mapping.get("BILLING_CREATE_SCHEMA"), default=False)

    log_level = (env_mapping.get("BILLING_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level {log_level!r}")

    return BillingConfig(
        default_provider=default_provider,
        database_url=database_url,
        subscriptions_table=subscriptions_table,
        products_table=products_table,
        default_trial_days=default_trial_days,
        log_level=log_level,
        create_schema=create_schema,
    )


__all__ = ["BillingConfig", "load_billing_config"]
