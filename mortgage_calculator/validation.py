"""Bounds checking for calculator inputs.

``validate`` reports at most one message per field: the first check that
fails, in the order type -> minimum -> maximum. The calculator itself accepts
anything numeric, so callers that need a hard stop use ``ensure_valid`` and
``ensure_computable``.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Callable, Dict, List, Optional
import math

from mortgage_calculator.calculator import DOWN_PAYMENT_DOLLAR, DOWN_PAYMENT_PERCENT, MortgageInputs


DOWN_PAYMENT_TYPES = (DOWN_PAYMENT_DOLLAR, DOWN_PAYMENT_PERCENT)

MIN_HOME_PRICE = 1000
MAX_HOME_PRICE = 10000000
MIN_LOAN_TERM = 1
MAX_LOAN_TERM = 50
MAX_INTEREST_RATE = 50
MAX_PROPERTY_TAX_RATE = 10

FIELD_NAMES = tuple(f.name for f in fields(MortgageInputs))

Check = Callable[[Any], Optional[str]]


class ValidationError(ValueError):
    """One or more inputs are out of bounds; ``errors`` maps field name to message."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        summary = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(f"invalid mortgage inputs ({summary})")


class DegenerateInputError(ValueError):
    """Inputs that would divide by zero somewhere downstream."""


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "nan" if isinstance(value, float) and math.isnan(value) else "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def _number(value: Any) -> Optional[str]:
    kind = _type_name(value)
    if kind != "number":
        return f"Expected number, received {kind}"
    return None


def _integer(value: Any) -> Optional[str]:
    if not isinstance(value, int) and not float(value).is_integer():
        return "Expected integer, received float"
    return None


def _at_least(bound: float) -> Check:
    def check(value: Any) -> Optional[str]:
        if not value >= bound:
            return f"Number must be greater than or equal to {bound}"
        return None
    return check


def _at_most(bound: float) -> Check:
    def check(value: Any) -> Optional[str]:
        if not value <= bound:
            return f"Number must be less than or equal to {bound}"
        return None
    return check


def _boolean(value: Any) -> Optional[str]:
    if not isinstance(value, bool):
        return f"Expected boolean, received {_type_name(value)}"
    return None


def _down_payment_type(value: Any) -> Optional[str]:
    if value not in DOWN_PAYMENT_TYPES:
        expected = " | ".join(f"'{t}'" for t in DOWN_PAYMENT_TYPES)
        return f"Invalid enum value. Expected {expected}, received '{value}'"
    return None


FIELD_CHECKS: Dict[str, List[Check]] = {
    "home_price": [_number, _at_least(MIN_HOME_PRICE), _at_most(MAX_HOME_PRICE)],
    "down_payment": [_number, _at_least(0)],
    "down_payment_type": [_down_payment_type],
    "loan_term": [_number, _integer, _at_least(MIN_LOAN_TERM), _at_most(MAX_LOAN_TERM)],
    "interest_rate": [_number, _at_least(0), _at_most(MAX_INTEREST_RATE)],
    "property_tax_rate": [_number, _at_least(0), _at_most(MAX_PROPERTY_TAX_RATE)],
    "home_insurance": [_number, _at_least(0)],
    "include_pmi": [_boolean],
}


def _first_failure(checks: List[Check], value: Any) -> Optional[str]:
    for check in checks:
        message = check(value)
        if message is not None:
            return message
    return None


def validate(inputs: MortgageInputs) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for name in FIELD_NAMES:
        message = _first_failure(FIELD_CHECKS[name], getattr(inputs, name))
        if message is not None:
            errors[name] = message
    return errors


def ensure_valid(inputs: MortgageInputs) -> None:
    errors = validate(inputs)
    if errors:
        raise ValidationError(errors)
    ensure_computable(inputs)


def ensure_computable(inputs: MortgageInputs) -> None:
    # The PMI check divides by the home price and straight-line P&I by the payment count
    if inputs.home_price == 0:
        raise DegenerateInputError("home_price must not be zero")
    if inputs.loan_term * 12 <= 0:
        raise DegenerateInputError("loan_term must cover at least one payment")
