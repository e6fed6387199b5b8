"""Who is being billed, and what a provider may know about them."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

MetadataValue = Union[StrictStr, StrictInt, float, bool, None]


class BillableIdentity(BaseModel):
    """The ``(type, id)`` pair identifying a billed party, e.g. ``("user", 42)``."""

    type: StrictStr = Field(min_length=1)
    id: Union[StrictStr, StrictInt]

    model_config = ConfigDict(frozen=True)

    @field_validator("id")
    @classmethod
    def _non_empty_id(cls, value: Union[str, int]) -> Union[str, int]:
        if isinstance(value, str) and not value.strip():
            raise ValueError("Billable id cannot be empty")
        return value

    @classmethod
    def of(cls, type_: str, id_: Union[str, int]) -> "BillableIdentity":
        return cls(type=type_, id=id_)

    @property
    def lookup_key(self) -> Tuple[str, str]:
        """``(type, str(id))``: ``("user", 1)`` and ``("user", "1")`` are the same party."""

        return self.type, str(self.id)

    def same_party(self, other: "BillableIdentity") -> bool:
        return self.lookup_key == other.lookup_key

    def __str__(self) -> str:
        return f"{self.type}:{self.id}"


class Address(BaseModel):
    """Postal address handed to providers during customer sync."""

    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state_or_province: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = Field(default=None, description="ISO-3166-1 alpha-2, e.g. 'US'.")

    model_config = ConfigDict(frozen=True)

    @field_validator("country_code")
    @classmethod
    def _normalize_country(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().upper()
        if not normalized:
            raise ValueError("Country code cannot be empty when provided.")
        return normalized


class BillableDetails(BaseModel):
    """Profile of a billable party as resolved by the embedding application."""

    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    locales: Optional[List[StrictStr]] = Field(
        default=None,
        description="Preferred locales such as 'en' or 'de-DE'; validation is left to providers.",
    )
    billing_address: Optional[Address] = None
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("display_name", "email", "phone")
    @classmethod
    def _non_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Value cannot be empty when provided.")
        return value

    @field_validator("locales")
    @classmethod
    def _non_empty_locales(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is not None and len(value) == 0:
            raise ValueError("Locales cannot be empty when provided.")
        return value

    @classmethod
    def empty(cls) -> "BillableDetails":
        return cls()

    def with_metadata(self, key: str, value: MetadataValue) -> "BillableDetails":
        return self.model_copy(update={"metadata": {**self.metadata, key: value}})


__all__ = ["Address", "BillableDetails", "BillableIdentity", "MetadataValue"]
