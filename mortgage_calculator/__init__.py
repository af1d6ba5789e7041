"""Mortgage calculator for the agency website's payment estimator.

Common imports:
    from mortgage_calculator import MortgageInputs, compute, validate

Serve the HTTP API:
    uvicorn mortgage_calculator.api:app

The service exposes POST /mortgage/compute plus schedule, Excel and PDF
exports of the same inputs.
"""

from .calculator import (
    BreakdownItem,
    MortgageInputs,
    MortgageResults,
    ScheduleRow,
    compute,
    payment_breakdown,
)
from .form import MortgageForm
from .validation import DegenerateInputError, ValidationError, ensure_valid, validate

__all__ = [
    "BreakdownItem",
    "MortgageInputs",
    "MortgageResults",
    "ScheduleRow",
    "compute",
    "payment_breakdown",
    "MortgageForm",
    "DegenerateInputError",
    "ValidationError",
    "ensure_valid",
    "validate",
]
