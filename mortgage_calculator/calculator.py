from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional
import calendar
import math


# Down payment interpretation
DOWN_PAYMENT_DOLLAR = "dollar"
DOWN_PAYMENT_PERCENT = "percent"

# Flat PMI model: 0.5% of the loan per year while less than 20% is put down
PMI_ANNUAL_RATE = 0.005
PMI_DOWN_PAYMENT_THRESHOLD = 20.0


@dataclass(frozen=True)
class MortgageInputs:
    """Loan parameters entered in the calculator form.

    Fields:
        home_price: purchase price of the home.
        down_payment: down payment, in dollars or percent depending on down_payment_type.
        down_payment_type: "dollar" or "percent".
        loan_term: loan term in years.
        interest_rate: annual interest rate in percent, e.g. 6.5 for 6.5%.
        property_tax_rate: annual property tax rate in percent of the home price.
        home_insurance: annual home insurance premium.
        include_pmi: estimate private mortgage insurance when less than 20% is put down.

    The defaults are the values the calculator form starts with.
    """

    home_price: float = 400000.0
    down_payment: float = 20.0
    down_payment_type: str = DOWN_PAYMENT_PERCENT
    loan_term: int = 30
    interest_rate: float = 6.5
    property_tax_rate: float = 1.2
    home_insurance: float = 1200.0
    include_pmi: bool = True


@dataclass(frozen=True)
class MortgageResults:
    """Monthly payment breakdown derived from MortgageInputs.

    Fields:
        monthly_payment: P&I + property taxes + insurance + PMI.
        principal_and_interest: amortized monthly loan payment.
        property_taxes: monthly property tax escrow.
        home_insurance: monthly insurance premium.
        pmi: monthly private mortgage insurance (0 when not charged).
        loan_amount: home price minus down payment.
        down_payment_amount: down payment in dollars.
        total_interest: interest paid over the life of the loan.
        payoff_date: date of the last scheduled payment; None if it falls outside the calendar.
        home_price: home price the results were computed for.
        number_of_payments: number of monthly payments.
    """

    monthly_payment: float
    principal_and_interest: float
    property_taxes: float
    home_insurance: float
    pmi: float
    loan_amount: float
    down_payment_amount: float
    total_interest: float
    payoff_date: Optional[date]
    home_price: float
    number_of_payments: int

    @property
    def down_payment_percent(self) -> float:
        return _percent_of(self.down_payment_amount, self.home_price)

    @property
    def total_of_payments(self) -> float:
        return self.loan_amount + self.total_interest

    @property
    def total_cost(self) -> float:
        return self.loan_amount + self.total_interest + self.down_payment_amount


@dataclass(frozen=True)
class BreakdownItem:
    """One component of the monthly payment and its share in percent."""

    label: str
    amount: float
    percentage: float


@dataclass
class ScheduleRow:
    """One month of the amortization schedule.

    Fields:
        month_index: payment number, starting at 1.
        payment: amount paid this month.
        principal: principal repaid this month.
        interest: interest paid this month.
        balance: loan balance after this payment.
    """

    month_index: int
    payment: float
    principal: float
    interest: float
    balance: float


def _divide(numerator: float, denominator: float) -> float:
    # IEEE semantics instead of ZeroDivisionError: x/0 -> +-inf, 0/0 -> nan
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def _percent_of(part: float, whole: float) -> float:
    return _divide(part, whole) * 100


def monthly_rate(annual_rate: float) -> float:
    # Annual percent -> monthly decimal, e.g. 6% => 0.005
    return annual_rate / 100.0 / 12.0


def annuity_payment(principal: float, rate: float, months: int) -> float:
    """Level monthly payment that repays ``principal`` over ``months`` at ``rate``.

    A rate of zero (or below) repays the principal in equal slices with no
    compounding.
    """
    if rate <= 0:
        return _divide(principal, months)
    try:
        factor = math.pow(1 + rate, months)
    except OverflowError:
        # payment tends to principal * rate as the term grows without bound
        return principal * rate
    if math.isinf(factor):
        return principal * rate
    return _divide(principal * rate * factor, factor - 1)


def add_months(src: date, months: int) -> date:
    """Advance ``src`` by calendar months, clamping the day to the month's length."""
    month = src.month - 1 + months
    year = src.year + month // 12
    month = month % 12 + 1
    day = min(src.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def down_payment_amount(inputs: MortgageInputs) -> float:
    if inputs.down_payment_type == DOWN_PAYMENT_PERCENT:
        return inputs.home_price * inputs.down_payment / 100
    return inputs.down_payment


def compute(inputs: MortgageInputs, today: Optional[date] = None) -> MortgageResults:
    """Compute the monthly payment breakdown for ``inputs``.

    Never raises for numeric inputs: values the validator would reject
    produce inf/nan sentinels instead, since the form recomputes on every
    keystroke before validation runs.
    """
    dp_amount = down_payment_amount(inputs)
    loan_amount = inputs.home_price - dp_amount

    rate = monthly_rate(inputs.interest_rate)
    number_of_payments = inputs.loan_term * 12

    principal_and_interest = annuity_payment(loan_amount, rate, number_of_payments)

    property_taxes = inputs.home_price * inputs.property_tax_rate / 100 / 12
    monthly_insurance = inputs.home_insurance / 12

    pmi = 0.0
    if inputs.include_pmi and _percent_of(dp_amount, inputs.home_price) < PMI_DOWN_PAYMENT_THRESHOLD:
        pmi = loan_amount * PMI_ANNUAL_RATE / 12

    monthly_payment = principal_and_interest + property_taxes + monthly_insurance + pmi
    total_interest = principal_and_interest * number_of_payments - loan_amount

    today = today or date.today()
    try:
        payoff_date: Optional[date] = add_months(today, int(number_of_payments))
    except (ValueError, OverflowError):
        payoff_date = None

    return MortgageResults(
        monthly_payment=monthly_payment,
        principal_and_interest=principal_and_interest,
        property_taxes=property_taxes,
        home_insurance=monthly_insurance,
        pmi=pmi,
        loan_amount=loan_amount,
        down_payment_amount=dp_amount,
        total_interest=total_interest,
        payoff_date=payoff_date,
        home_price=inputs.home_price,
        number_of_payments=number_of_payments,
    )


def payment_breakdown(results: MortgageResults) -> List[BreakdownItem]:
    # Components that are zero (e.g. no PMI) are left out
    components = [
        ("Principal & Interest", results.principal_and_interest),
        ("Property Taxes", results.property_taxes),
        ("Home Insurance", results.home_insurance),
        ("PMI", results.pmi),
    ]
    items: List[BreakdownItem] = []
    for label, amount in components:
        if not amount > 0:
            continue
        share = (amount / results.monthly_payment * 100) if results.monthly_payment else 0.0
        items.append(BreakdownItem(label, amount, share))
    return items


def build_schedule(principal: float, rate: float, months: int) -> List[ScheduleRow]:
    # Level payment; the principal share grows and the interest share shrinks each month
    rows: List[ScheduleRow] = []
    balance = principal
    if months <= 0 or principal <= 0:
        return rows

    payment = annuity_payment(principal, rate, months)
    for i in range(1, int(months) + 1):
        interest = balance * rate
        principal_payment = min(payment - interest, balance)
        payment_effective = principal_payment + interest
        balance -= principal_payment
        rows.append(ScheduleRow(i, payment_effective, principal_payment, interest, balance))
    return rows


def schedule_for(inputs: MortgageInputs) -> List[ScheduleRow]:
    """Amortization schedule of the P&I payment for ``inputs``."""
    loan_amount = inputs.home_price - down_payment_amount(inputs)
    return build_schedule(loan_amount, monthly_rate(inputs.interest_rate), inputs.loan_term * 12)


def aggregate_interest_by_year(schedule: List[ScheduleRow]) -> Dict[int, float]:
    # Loan year 1 = payments 1-12, year 2 = payments 13-24, ...
    totals: Dict[int, float] = {}
    for row in schedule:
        year = (row.month_index - 1) // 12 + 1
        totals[year] = totals.get(year, 0.0) + row.interest
    return totals
