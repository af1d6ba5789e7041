from __future__ import annotations

from datetime import date
from io import BytesIO
from typing import Dict, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
    PageBreak,
    Flowable,
)

from mortgage_calculator.calculator import (
    DOWN_PAYMENT_PERCENT,
    PMI_DOWN_PAYMENT_THRESHOLD,
    MortgageInputs,
    MortgageResults,
    payment_breakdown,
)
from mortgage_calculator.validation import ensure_computable


# --- Fonts and colors ---

FONT_NAME = "Helvetica"
FONT_NAME_BOLD = "Helvetica-Bold"

PALETTE = {
    "primary_text": "#1E293B",
    "secondary_text": "#64748B",
    "accent_green": "#10B981",
    "accent_blue": "#3B82F6",
    "highlight_bg": "#F1F5F9",
    "border": "#E2E8F0",
    "warning": "#EF4444",
    "white": "#FFFFFF",
    "dark_header": "#0F172A",
}

REPORT_TITLE = "Mortgage Payment Report"


def _fmt_money(v: float) -> str:
    return f"${v:,.2f}"


def _fmt_percent(v: float) -> str:
    return f"{v:.2f}%"


def _fmt_month(d: Optional[date]) -> str:
    return d.strftime("%B %Y") if d else "n/a"


def _down_payment_label(inputs: MortgageInputs, results: MortgageResults) -> str:
    if inputs.down_payment_type == DOWN_PAYMENT_PERCENT:
        return f"{_fmt_percent(inputs.down_payment)} ({_fmt_money(results.down_payment_amount)})"
    return f"{_fmt_money(results.down_payment_amount)} ({_fmt_percent(results.down_payment_percent)})"


class PageHeader(Flowable):
    """A thin horizontal rule."""

    def __init__(self, width, height=0):
        super().__init__()
        self.width = width
        self.height = height

    def draw(self):
        self.canv.setStrokeColor(colors.HexColor(PALETTE["border"]))
        self.canv.setLineWidth(0.4)
        self.canv.line(0, self.height, self.width, self.height)


def _header_footer(canvas, doc):
    """Header and footer on every page."""
    canvas.saveState()
    canvas.setFont(FONT_NAME, 9)
    canvas.setFillColor(colors.HexColor(PALETTE["secondary_text"]))
    canvas.setStrokeColor(colors.HexColor(PALETTE["border"]))
    canvas.setLineWidth(0.4)
    canvas.line(doc.leftMargin, doc.height + doc.topMargin - 9 * mm, doc.width + doc.leftMargin, doc.height + doc.topMargin - 9 * mm)
    canvas.drawString(doc.leftMargin, doc.height + doc.topMargin - 7 * mm, REPORT_TITLE)

    canvas.setFont(FONT_NAME, 8)
    canvas.drawString(doc.leftMargin, 10 * mm, f"Generated: {date.today().strftime('%Y-%m-%d')}")
    canvas.drawRightString(doc.width + doc.leftMargin, 10 * mm, f"Page {doc.page}")
    canvas.restoreState()


def _table_style(header_color: str) -> TableStyle:
    return TableStyle(
        [
            ("FONT", (0, 0), (-1, -1), FONT_NAME, 10),
            ("FONT", (0, 0), (-1, 0), FONT_NAME_BOLD, 10),
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(header_color)),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor(PALETTE["white"])),
            ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LINEBELOW", (0, -1), (-1, -1), 0.8, colors.HexColor(PALETTE["border"])),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.HexColor("#FFFFFF"), colors.HexColor(PALETTE["highlight_bg"])]),
            ("PADDING", (0, 0), (-1, -1), 7),
        ]
    )


def generate_pdf(
    *,
    inputs: MortgageInputs,
    results: MortgageResults,
    interest_by_year: Dict[int, float],
) -> bytes:
    """Render the payment report for ``inputs``/``results`` and return the PDF bytes.

    The loan information block shows the inputs as entered rather than values
    recovered from the results.
    """
    ensure_computable(inputs)

    styles = getSampleStyleSheet()

    meta_style = ParagraphStyle(
        "meta",
        parent=styles["BodyText"],
        fontName=FONT_NAME,
        fontSize=9.5,
        leading=14.5,
        textColor=colors.HexColor(PALETTE["secondary_text"]),
    )

    base_style = ParagraphStyle(
        "base",
        parent=styles["BodyText"],
        fontName=FONT_NAME,
        fontSize=10.2,
        leading=16,
        textColor=colors.HexColor(PALETTE["primary_text"]),
    )

    title_style = ParagraphStyle(
        "title",
        parent=styles["Title"],
        fontName=FONT_NAME_BOLD,
        fontSize=25,
        leading=33,
        textColor=colors.HexColor(PALETTE["primary_text"]),
        spaceAfter=10,
    )

    h2_style = ParagraphStyle(
        "h2",
        parent=styles["Heading2"],
        fontName=FONT_NAME_BOLD,
        fontSize=16.5,
        leading=23,
        textColor=colors.HexColor(PALETTE["primary_text"]),
        spaceBefore=8,
        spaceAfter=8,
    )

    big_blue_style = ParagraphStyle(
        "big_blue",
        parent=styles["Title"],
        fontName=FONT_NAME_BOLD,
        fontSize=40,
        leading=48,
        textColor=colors.HexColor(PALETTE["accent_blue"]),
        alignment=1,
        spaceBefore=6,
        spaceAfter=6,
    )

    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=LETTER,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=32 * mm,
        bottomMargin=22 * mm,
        title=REPORT_TITLE,
    )

    story = []

    # -------------------- Page 1: payment summary --------------------
    story.append(Spacer(1, 3 * mm))
    story.append(Paragraph(f"<b>{REPORT_TITLE}</b>", title_style))
    story.append(Paragraph(f"Generated {date.today().strftime('%Y-%m-%d')}", meta_style))
    story.append(PageHeader(doc.width))
    story.append(Spacer(1, 6 * mm))

    info_style = ParagraphStyle("info", parent=base_style, leading=17)
    info_data = [
        ["Home & Loan", "Taxes & Insurance"],
        [
            Paragraph(
                f"Home price: {_fmt_money(inputs.home_price)}<br/>"
                f"Down payment: {_down_payment_label(inputs, results)}<br/>"
                f"Loan amount: {_fmt_money(results.loan_amount)}<br/>"
                f"Loan term: {inputs.loan_term} years<br/>"
                f"Interest rate: {_fmt_percent(inputs.interest_rate)}",
                info_style,
            ),
            Paragraph(
                f"Property tax rate: {_fmt_percent(inputs.property_tax_rate)}<br/>"
                f"Home insurance: {_fmt_money(inputs.home_insurance)} / year<br/>"
                f"PMI estimate: {'included' if inputs.include_pmi else 'not included'}",
                info_style,
            ),
        ],
    ]
    info_table = Table(info_data, colWidths=[86 * mm, 86 * mm])
    info_table.setStyle(
        TableStyle(
            [
                ("FONT", (0, 0), (-1, -1), FONT_NAME, 9.7),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(PALETTE["highlight_bg"])),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor(PALETTE["secondary_text"])),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("BOX", (0, 0), (-1, -1), 0.8, colors.HexColor(PALETTE["border"])),
                ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.HexColor(PALETTE["border"])),
                ("PADDING", (0, 0), (-1, -1), 10),
            ]
        )
    )
    story.append(info_table)
    story.append(Spacer(1, 6 * mm))

    story.append(Paragraph("Estimated monthly payment", ParagraphStyle(name="payment_title", parent=base_style, alignment=1, fontSize=11)))
    story.append(Paragraph(_fmt_money(results.monthly_payment), big_blue_style))
    story.append(Spacer(1, 4 * mm))

    breakdown_data = [["Component", "Monthly", "Share"]]
    for item in payment_breakdown(results):
        breakdown_data.append([item.label, _fmt_money(item.amount), f"{item.percentage:.1f}%"])
    breakdown_table = Table(breakdown_data, colWidths=[80 * mm, 50 * mm, 40 * mm])
    breakdown_table.setStyle(_table_style(PALETTE["dark_header"]))
    story.append(breakdown_table)
    story.append(Spacer(1, 6 * mm))

    summary_data = [
        ["Loan Summary", ""],
        ["Total interest", _fmt_money(results.total_interest)],
        ["Total of loan payments", _fmt_money(results.total_of_payments)],
        ["Total cost (incl. down payment)", _fmt_money(results.total_cost)],
        ["Number of payments", str(results.number_of_payments)],
        ["Payoff date", _fmt_month(results.payoff_date)],
    ]
    summary_table = Table(summary_data, colWidths=[110 * mm, 60 * mm])
    summary_table.setStyle(_table_style(PALETTE["dark_header"]))
    story.append(summary_table)

    story.append(PageBreak())

    # -------------------- Page 2: interest by year and tips --------------------
    story.append(Paragraph("Interest by Loan Year", h2_style))
    story.append(PageHeader(doc.width))
    story.append(Spacer(1, 4 * mm))

    if interest_by_year:
        year_data = [["Year", "Interest paid"]]
        for year in sorted(interest_by_year):
            year_data.append([str(year), _fmt_money(interest_by_year[year])])
        year_table = Table(year_data, colWidths=[40 * mm, 60 * mm], repeatRows=1)
        year_table.setStyle(_table_style(PALETTE["accent_blue"]))
        story.append(year_table)
    else:
        story.append(Paragraph("No amortization schedule: the loan amount is zero or negative.", base_style))

    story.append(Spacer(1, 8 * mm))
    story.append(Paragraph("Ways to Save", h2_style))
    tips = []
    if results.pmi > 0:
        tips.append(
            f"<b>{PMI_DOWN_PAYMENT_THRESHOLD:.0f}% down payment</b> eliminates PMI, "
            f"saving you <font color='{PALETTE['accent_green']}'>{_fmt_money(results.pmi)}</font> monthly."
        )
    tips += [
        "<b>Shorter loan terms</b> mean higher monthly payments but significant interest savings.",
        "<b>Extra payments</b> toward principal can reduce your loan term by years.",
        "<b>Shop around</b> for better interest rates; even 0.25% can save thousands.",
    ]
    for tip in tips:
        story.append(Paragraph(f"• {tip}", base_style))

    story.append(Spacer(1, 12 * mm))
    story.append(PageHeader(doc.width))
    story.append(Spacer(1, 4 * mm))
    story.append(
        Paragraph(
            "<b>Disclaimer:</b> This report is a mathematical estimate based on the figures you entered. "
            "PMI is approximated at a flat 0.5% of the loan amount per year. Actual payments depend on your "
            "lender, escrow, credit profile and local tax assessments.",
            ParagraphStyle(
                "disclaimer",
                parent=base_style,
                fontSize=8.5,
                leading=14,
                textColor=colors.HexColor(PALETTE["secondary_text"]),
            ),
        )
    )

    doc.build(story, onFirstPage=_header_footer, onLaterPages=_header_footer)
    return buf.getvalue()
