from __future__ import annotations

import pytest
from pydantic import ValidationError

from billing_core.common import (
    FlagValue,
    LimitValue,
    combine,
    feature_key,
    flag_off,
    flag_on,
    limit,
    parse_feature_value,
    unlimited,
)
from billing_core.errors import FeatureValueMismatch, SubscriptionInvariantViolation


def test_flag_rejects_non_boolean_values() -> None:
    with pytest.raises(ValidationError):
        FlagValue(value=1)
    with pytest.raises(ValidationError):
        FlagValue(value="true")


@pytest.mark.parametrize("value", [-1, "", "lots", True, 2.5])
def test_limit_rejects_malformed_values(value) -> None:
    with pytest.raises(ValidationError):
        LimitValue(value=value)


def test_parse_feature_value_uses_kind_discriminator() -> None:
    assert parse_feature_value({"kind": "flag", "value": True}) == flag_on()
    assert parse_feature_value({"kind": "limit", "value": 5}) == limit(5)
    assert parse_feature_value({"kind": "limit", "value": "unlimited"}).is_unlimited

    with pytest.raises(ValidationError):
        parse_feature_value({"kind": "flag", "value": 5})
    with pytest.raises(ValidationError):
        parse_feature_value({"kind": "quota", "value": 5})


def test_feature_key_format() -> None:
    assert feature_key("api_calls") == "api_calls"
    with pytest.raises(ValidationError):
        feature_key("API-calls")
    with pytest.raises(ValidationError):
        feature_key("")


def test_combine_equal_values_returns_same_instance() -> None:
    seats = limit(5)
    assert seats.combine(limit(5)) is seats
    assert seats.combine(seats) is seats

    flag = flag_on()
    assert flag.combine(flag) is flag


@pytest.mark.parametrize(
    "first, second, expected",
    [
        (flag_on(), flag_off(), flag_on()),
        (flag_off(), flag_off(), flag_off()),
        (limit(5), limit(5), limit(5)),
        (limit(5), limit(3), limit(8)),
        (limit(0), limit(7), limit(7)),
        (limit(5), unlimited(), unlimited()),
        (unlimited(), unlimited(), unlimited()),
    ],
)
def test_combine_is_commutative(first, second, expected) -> None:
    assert combine(first, second) == expected
    assert combine(second, first) == expected


def test_limit_summation_is_associative() -> None:
    a, b, c = limit(1), limit(2), limit(4)
    assert combine(combine(a, b), c) == combine(a, combine(b, c)) == limit(7)


@pytest.mark.parametrize("amount", [0, 1, 10, 10_000])
def test_unlimited_absorbs_any_limit(amount: int) -> None:
    assert combine(limit(amount), unlimited()) == unlimited()
    assert combine(unlimited(), limit(amount)) == unlimited()


def test_combining_different_kinds_fails() -> None:
    with pytest.raises(FeatureValueMismatch) as exc:
        flag_on().combine(limit(3))

    assert isinstance(exc.value, SubscriptionInvariantViolation)
    with pytest.raises(FeatureValueMismatch):
        limit(3).combine(flag_off())


def test_limit_allows() -> None:
    assert limit(5).allows(5)
    assert not limit(5).allows(6)
    assert unlimited().allows(10 ** 9)


def test_plus_adds_equal_limits() -> None:
    seats = limit(5)

    assert seats.plus(limit(5)) == limit(10)
    assert seats.plus(limit(0)) is seats
    assert seats.plus(unlimited()) == unlimited()
    with pytest.raises(FeatureValueMismatch):
        seats.plus(flag_on())
