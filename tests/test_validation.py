"""Tests for input bounds checking."""

import math

import pytest

from mortgage_calculator.calculator import DOWN_PAYMENT_DOLLAR, MortgageInputs
from mortgage_calculator.validation import (
    DegenerateInputError,
    ValidationError,
    ensure_computable,
    ensure_valid,
    validate,
)


def test_defaults_are_valid() -> None:
    assert validate(MortgageInputs()) == {}
    ensure_valid(MortgageInputs())


def test_bounds_are_inclusive() -> None:
    edge = MortgageInputs(
        home_price=1000,
        down_payment=0,
        loan_term=1,
        interest_rate=0,
        property_tax_rate=10,
        home_insurance=0,
    )
    assert validate(edge) == {}
    assert validate(MortgageInputs(home_price=10000000, loan_term=50, interest_rate=50)) == {}


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("home_price", 999, "Number must be greater than or equal to 1000"),
        ("home_price", 10000001, "Number must be less than or equal to 10000000"),
        ("down_payment", -1, "Number must be greater than or equal to 0"),
        ("loan_term", 0, "Number must be greater than or equal to 1"),
        ("loan_term", 51, "Number must be less than or equal to 50"),
        ("loan_term", 30.5, "Expected integer, received float"),
        ("interest_rate", -0.1, "Number must be greater than or equal to 0"),
        ("interest_rate", 50.5, "Number must be less than or equal to 50"),
        ("property_tax_rate", 11, "Number must be less than or equal to 10"),
        ("home_insurance", -5, "Number must be greater than or equal to 0"),
        ("down_payment_type", "euro", "Invalid enum value. Expected 'dollar' | 'percent', received 'euro'"),
        ("include_pmi", "yes", "Expected boolean, received string"),
    ],
)
def test_out_of_bounds_field(field, value, message) -> None:
    errors = validate(MortgageInputs(**{field: value}))
    assert errors == {field: message}


def test_first_failure_per_field_only() -> None:
    """A string fails the type check; bounds are not reported on top of it."""
    errors = validate(MortgageInputs(home_price="abc"))  # type: ignore[arg-type]
    assert errors == {"home_price": "Expected number, received string"}


def test_booleans_and_nan_are_not_numbers() -> None:
    errors = validate(MortgageInputs(home_price=True, interest_rate=math.nan))  # type: ignore[arg-type]
    assert errors == {
        "home_price": "Expected number, received boolean",
        "interest_rate": "Expected number, received nan",
    }


def test_several_fields_reported_together() -> None:
    errors = validate(MortgageInputs(home_price=10, loan_term=80, include_pmi=None))  # type: ignore[arg-type]
    assert set(errors) == {"home_price", "loan_term", "include_pmi"}
    assert errors["include_pmi"] == "Expected boolean, received null"


def test_whole_float_term_is_accepted() -> None:
    assert validate(MortgageInputs(loan_term=15.0)) == {}  # type: ignore[arg-type]


def test_validate_does_not_touch_inputs() -> None:
    inputs = MortgageInputs(home_price=5)
    validate(inputs)
    assert inputs == MortgageInputs(home_price=5)


def test_ensure_valid_raises_with_field_errors() -> None:
    with pytest.raises(ValidationError) as info:
        ensure_valid(MortgageInputs(home_price=0, loan_term=0))
    assert set(info.value.errors) == {"home_price", "loan_term"}
    assert isinstance(info.value, ValueError)


def test_down_payment_above_price_passes_validation() -> None:
    inputs = MortgageInputs(down_payment=500000, down_payment_type=DOWN_PAYMENT_DOLLAR)
    assert validate(inputs) == {}


def test_ensure_computable_rejects_zero_denominators() -> None:
    with pytest.raises(DegenerateInputError):
        ensure_computable(MortgageInputs(home_price=0))
    with pytest.raises(DegenerateInputError):
        ensure_computable(MortgageInputs(loan_term=0))
    ensure_computable(MortgageInputs())
