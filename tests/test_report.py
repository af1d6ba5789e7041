"""Tests for the PDF payment report."""

from datetime import date

import pytest

from mortgage_calculator.calculator import (
    DOWN_PAYMENT_DOLLAR,
    MortgageInputs,
    aggregate_interest_by_year,
    compute,
    schedule_for,
)
from mortgage_calculator.report import generate_pdf
from mortgage_calculator.validation import DegenerateInputError


def test_report_renders_pdf() -> None:
    inputs = MortgageInputs(down_payment=5)
    results = compute(inputs, today=date(2024, 1, 1))
    pdf = generate_pdf(
        inputs=inputs,
        results=results,
        interest_by_year=aggregate_interest_by_year(schedule_for(inputs)),
    )
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_report_without_schedule() -> None:
    """A fully paid-down home has no schedule; the report still renders."""
    inputs = MortgageInputs(down_payment=400000, down_payment_type=DOWN_PAYMENT_DOLLAR)
    results = compute(inputs, today=date(2024, 1, 1))
    assert schedule_for(inputs) == []
    pdf = generate_pdf(inputs=inputs, results=results, interest_by_year={})
    assert pdf.startswith(b"%PDF")


def test_report_rejects_zero_home_price() -> None:
    inputs = MortgageInputs(home_price=0, down_payment=0, down_payment_type=DOWN_PAYMENT_DOLLAR)
    results = compute(inputs, today=date(2024, 1, 1))
    with pytest.raises(DegenerateInputError):
        generate_pdf(inputs=inputs, results=results, interest_by_year={})
