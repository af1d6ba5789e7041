import logging
import os
from datetime import date
from io import BytesIO
from typing import Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from mortgage_calculator.calculator import (
    MortgageInputs,
    MortgageResults,
    ScheduleRow,
    aggregate_interest_by_year,
    compute,
    payment_breakdown,
    schedule_for,
)
from mortgage_calculator.report import generate_pdf
from mortgage_calculator.validation import DegenerateInputError, ValidationError, ensure_valid


logger = logging.getLogger(__name__)

API_KEY = os.getenv("API_KEY")

DEFAULT_RATE_LIMIT = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")
EXPORT_RATE_LIMIT = os.getenv("RATE_LIMIT_EXPORT", "15/minute")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() not in ("0", "false", "no")
MAX_SCHEDULE_ROWS = int(os.getenv("MAX_SCHEDULE_ROWS", "2000"))
MAX_EXPORT_BYTES = int(os.getenv("MAX_EXPORT_BYTES", str(6 * 1024 * 1024)))

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        if candidate:
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return get_remote_address(request)


limiter = Limiter(key_func=_client_ip, default_limits=[DEFAULT_RATE_LIMIT], enabled=RATE_LIMIT_ENABLED)

app = FastAPI(
    title="Mortgage Calculator",
    description="Monthly payment, PMI and amortization estimates for home buyers.",
    version="0.1.0",
)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


def require_api_key(request: Request):
    if not API_KEY:
        return
    provided = request.headers.get("x-api-key")
    if not provided or provided != API_KEY:
        raise HTTPException(status_code=401, detail="invalid or missing api key")


_DEFAULTS = MortgageInputs()


class MortgageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    home_price: float = Field(_DEFAULTS.home_price, description="Purchase price of the home")
    down_payment: float = Field(_DEFAULTS.down_payment, description="Down payment, dollars or percent per downPaymentType")
    down_payment_type: str = Field(_DEFAULTS.down_payment_type, description="dollar / percent")
    loan_term: int = Field(_DEFAULTS.loan_term, description="Loan term in years")
    interest_rate: float = Field(_DEFAULTS.interest_rate, description="Annual interest rate in percent, e.g. 6.5")
    property_tax_rate: float = Field(_DEFAULTS.property_tax_rate, description="Annual property tax rate in percent")
    home_insurance: float = Field(_DEFAULTS.home_insurance, description="Annual home insurance premium")
    include_pmi: bool = Field(_DEFAULTS.include_pmi, alias="includePMI", description="Estimate PMI below 20% down")

    def to_inputs(self) -> MortgageInputs:
        return MortgageInputs(**self.model_dump())


# python field name -> wire name, for error bodies
WIRE_NAMES: Dict[str, str] = {name: field.alias or name for name, field in MortgageRequest.model_fields.items()}


class BreakdownItemResponse(BaseModel):
    label: str
    amount: float
    percentage: float


class MortgageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    monthly_payment: float
    principal_and_interest: float
    property_taxes: float
    home_insurance: float
    pmi: float
    loan_amount: float
    down_payment_amount: float
    total_interest: float
    payoff_date: Optional[date]
    down_payment_percent: float
    number_of_payments: int
    total_of_payments: float
    total_cost: float
    breakdown: List[BreakdownItemResponse]


class ScheduleRowResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    month_index: int
    payment: float
    principal: float
    interest: float
    balance: float


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    loan_amount: float
    principal_and_interest: float
    number_of_payments: int
    total_interest: float
    rows: List[ScheduleRowResponse]
    interest_by_year: Dict[int, float]


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})


@app.exception_handler(ValidationError)
async def _validation_error_handler(request: Request, exc: ValidationError):
    errors = {WIRE_NAMES.get(name, name): message for name, message in exc.errors.items()}
    logger.warning("rejected mortgage inputs: %s", errors)
    return JSONResponse(status_code=400, content={"detail": "invalid mortgage inputs", "errors": errors})


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    # first message per field, same shape as ValidationError
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.setdefault(loc[0] if loc else "body", err.get("msg", "invalid value"))
    logger.warning("unparseable mortgage request: %s", errors)
    return JSONResponse(status_code=400, content={"detail": "invalid mortgage inputs", "errors": errors})


@app.exception_handler(DegenerateInputError)
async def _degenerate_input_handler(request: Request, exc: DegenerateInputError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _validated_inputs(body: MortgageRequest) -> MortgageInputs:
    inputs = body.to_inputs()
    ensure_valid(inputs)
    return inputs


def _to_response(results: MortgageResults) -> MortgageResponse:
    return MortgageResponse(
        monthly_payment=results.monthly_payment,
        principal_and_interest=results.principal_and_interest,
        property_taxes=results.property_taxes,
        home_insurance=results.home_insurance,
        pmi=results.pmi,
        loan_amount=results.loan_amount,
        down_payment_amount=results.down_payment_amount,
        total_interest=results.total_interest,
        payoff_date=results.payoff_date,
        down_payment_percent=results.down_payment_percent,
        number_of_payments=results.number_of_payments,
        total_of_payments=results.total_of_payments,
        total_cost=results.total_cost,
        breakdown=[
            BreakdownItemResponse(label=item.label, amount=item.amount, percentage=item.percentage)
            for item in payment_breakdown(results)
        ],
    )


@app.get("/health", tags=["health"])
@limiter.exempt
def health() -> dict:
    return {"status": "ok"}


@app.post(
    "/mortgage/compute",
    tags=["mortgage"],
    responses={400: {"description": "Invalid mortgage inputs"}},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
def compute_mortgage(request: Request, body: MortgageRequest, _=Depends(require_api_key)) -> MortgageResponse:
    inputs = _validated_inputs(body)
    results = compute(inputs)
    logger.debug("computed mortgage payment %.2f for %s", results.monthly_payment, inputs)
    return _to_response(results)


@app.post(
    "/mortgage/schedule",
    tags=["mortgage"],
    responses={400: {"description": "Invalid mortgage inputs"}},
)
@limiter.limit(DEFAULT_RATE_LIMIT)
def mortgage_schedule(request: Request, body: MortgageRequest, _=Depends(require_api_key)) -> ScheduleResponse:
    inputs = _validated_inputs(body)
    results = compute(inputs)
    schedule = schedule_for(inputs)
    _ensure_row_limit(len(schedule), "schedule")

    return ScheduleResponse(
        loan_amount=results.loan_amount,
        principal_and_interest=results.principal_and_interest,
        number_of_payments=results.number_of_payments,
        total_interest=results.total_interest,
        rows=[
            ScheduleRowResponse(
                month_index=row.month_index,
                payment=row.payment,
                principal=row.principal,
                interest=row.interest,
                balance=row.balance,
            )
            for row in schedule
        ],
        interest_by_year=aggregate_interest_by_year(schedule),
    )


@app.post(
    "/mortgage/schedule:export-xlsx",
    tags=["mortgage"],
    responses={400: {"description": "Invalid mortgage inputs"}},
)
@limiter.limit(EXPORT_RATE_LIMIT)
def export_schedule_xlsx(request: Request, body: MortgageRequest, _=Depends(require_api_key)):
    """Amortization schedule as an Excel workbook; headers carry the headline numbers."""
    inputs = _validated_inputs(body)
    results = compute(inputs)
    schedule = schedule_for(inputs)
    _ensure_row_limit(len(schedule), "schedule")

    xlsx_bytes = _schedule_to_xlsx(schedule, results)
    _ensure_export_size(len(xlsx_bytes))

    return StreamingResponse(
        BytesIO(xlsx_bytes),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": "attachment; filename=mortgage_schedule.xlsx",
            "X-Monthly-Payment": f"{float(results.monthly_payment):.2f}",
            "X-Total-Interest": f"{float(results.total_interest):.2f}",
        },
    )


@app.post(
    "/mortgage/report:export-pdf",
    tags=["mortgage"],
    responses={400: {"description": "Invalid mortgage inputs"}},
)
@limiter.limit(EXPORT_RATE_LIMIT)
def export_report_pdf(request: Request, body: MortgageRequest, _=Depends(require_api_key)):
    """Payment report PDF: breakdown, loan summary, interest by year."""
    inputs = _validated_inputs(body)
    results = compute(inputs)
    schedule = schedule_for(inputs)
    _ensure_row_limit(len(schedule), "schedule")

    pdf_bytes = generate_pdf(
        inputs=inputs,
        results=results,
        interest_by_year=aggregate_interest_by_year(schedule),
    )
    _ensure_export_size(len(pdf_bytes))

    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": "attachment; filename=mortgage_report.pdf",
            "X-Monthly-Payment": f"{float(results.monthly_payment):.2f}",
        },
    )


def _schedule_to_xlsx(schedule: List[ScheduleRow], results: MortgageResults) -> bytes:
    """Write a summary sheet and the month-by-month schedule; return the xlsx bytes."""
    wb = Workbook()
    summary = wb.active
    summary.title = "Summary"

    header_font = Font(bold=True, name="Arial", size=11, color="FFFFFF")
    body_font = Font(name="Arial", size=10)
    header_fill = PatternFill("solid", fgColor="0F172A")
    alt_fill = PatternFill("solid", fgColor="F8FAFC")
    border = Border(bottom=Side(style="thin", color="E2E8F0"))
    align_right = Alignment(horizontal="right")
    align_center = Alignment(horizontal="center")

    summary.append(["Item", "Amount"])
    summary_rows = [
        ("Monthly payment", results.monthly_payment),
        ("Principal & interest", results.principal_and_interest),
        ("Property taxes", results.property_taxes),
        ("Home insurance", results.home_insurance),
        ("PMI", results.pmi),
        ("Loan amount", results.loan_amount),
        ("Down payment", results.down_payment_amount),
        ("Total interest", results.total_interest),
        ("Total of loan payments", results.total_of_payments),
        ("Total cost", results.total_cost),
    ]
    for label, amount in summary_rows:
        summary.append([label, round(amount, 2)])
    summary.append(["Payoff date", results.payoff_date.isoformat() if results.payoff_date else ""])

    for cell in summary[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = align_center
    summary.column_dimensions["A"].width = 26
    summary.column_dimensions["B"].width = 16

    ws = wb.create_sheet("Schedule")
    headers = ["Month", "Payment", "Principal", "Interest", "Balance", "Interest share"]
    ws.append(headers)

    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = align_center

    for idx, row in enumerate(schedule, start=2):
        ratio = (row.interest / row.payment) if row.payment else 0.0
        ws.append([
            row.month_index,
            round(row.payment, 2),
            round(row.principal, 2),
            round(row.interest, 2),
            round(row.balance, 2),
            f"{ratio*100:.2f}%",
        ])
        for col_idx in range(1, 7):
            cell = ws.cell(row=idx, column=col_idx)
            cell.font = body_font
            cell.alignment = align_right if col_idx > 1 else align_center
            if idx % 2 == 0:
                cell.fill = alt_fill
            cell.border = border
        # principal-dominated months in red
        ratio_cell = ws.cell(row=idx, column=6)
        if ratio < 0.5:
            ratio_cell.font = Font(name="Arial", size=10, color="EF4444")

    widths = [8, 14, 14, 14, 16, 14]
    for i, w in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = w

    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def _ensure_row_limit(rows: int, label: str) -> None:
    if rows > MAX_SCHEDULE_ROWS:
        raise HTTPException(status_code=413, detail=f"{label} too large, exceeds {MAX_SCHEDULE_ROWS} rows limit")


def _ensure_export_size(size_bytes: int) -> None:
    if size_bytes > MAX_EXPORT_BYTES:
        raise HTTPException(status_code=413, detail="export file too large")
