"""Currency and money value types."""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints

Currency = Annotated[str, StringConstraints(pattern=r"^[a-z]{3}$")]


class Money(BaseModel):
    """Amount in minor units of a currency, e.g. ``1000 usd`` for ten dollars."""

    amount: StrictInt = Field(ge=0)
    currency: Currency

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, amount: int, currency: str) -> "Money":
        return cls(amount=amount, currency=currency)

    @classmethod
    def usd(cls, amount: int) -> "Money":
        return cls(amount=amount, currency="usd")

    @classmethod
    def eur(cls, amount: int) -> "Money":
        return cls(amount=amount, currency="eur")

    def has_same_currency(self, other: "Money") -> bool:
        return self.currency == other.currency


__all__ = ["Currency", "Money"]
