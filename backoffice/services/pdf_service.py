"""PDF rendering for invoices, completion certificates and expense reports"""

import html
import io
import logging
from typing import Any, Dict, List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from backoffice.exceptions import UpstreamFailure
from backoffice.monitoring.metrics import track_pdf_render

logger = logging.getLogger(__name__)

ONES = [
    "Zero", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]
SCALES = [(1_000_000_000, "Billion"), (1_000_000, "Million"), (1_000, "Thousand")]


def _below_thousand(number: int) -> List[str]:
    words = []
    if number >= 100:
        words += [ONES[number // 100], "Hundred"]
        number %= 100
    if number >= 20:
        words.append(TENS[number // 10])
        number %= 10
    if number:
        words.append(ONES[number])
    return words


def integer_to_words(number: int) -> str:
    """Spell out a non-negative integer in English"""
    if number == 0:
        return ONES[0]

    words = []
    for scale, name in SCALES:
        if number >= scale:
            words += _below_thousand(number // scale) + [name]
            number %= scale
    words += _below_thousand(number)
    return " ".join(words)


def amount_to_words(amount: float) -> str:
    """
    Spell out a currency amount in Dirhams and Fils.

    >>> amount_to_words(1250.5)
    'One Thousand Two Hundred Fifty Dirhams and Fifty Fils'
    """
    cents = round(abs(amount) * 100)
    dirhams, fils = divmod(cents, 100)

    parts = []
    if dirhams:
        parts.append(f"{integer_to_words(dirhams)} Dirhams")
    if fils:
        parts.append(f"{integer_to_words(fils)} Fils")
    return " and ".join(parts) or "Zero Dirhams"


def money(value: Any) -> str:
    """Format an amount to two decimals"""
    return f"{float(value or 0):,.2f}"


TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
])

NUMERIC_COLUMNS_STYLE = [("ALIGN", (-2, 1), (-1, -1), "RIGHT")]


class PdfRenderer:
    """Renders report dictionaries into PDF bytes"""

    def __init__(self):
        self.styles = getSampleStyleSheet()

    def _build(self, document_type: str, story: list) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=40,
            rightMargin=40,
            topMargin=40,
            bottomMargin=40,
        )

        with track_pdf_render(document_type):
            try:
                doc.build(story)
            except Exception as e:
                logger.error(f"Failed to render {document_type} PDF: {e}")
                raise UpstreamFailure(f"Failed to generate {document_type} PDF")

        return buffer.getvalue()

    def _table(self, data: list, col_widths: list, numeric: bool = True) -> Table:
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(TABLE_STYLE)
        if numeric:
            table.setStyle(TableStyle(NUMERIC_COLUMNS_STYLE))
        return table

    def _para(self, text: Any, style: str = "Normal") -> Paragraph:
        return Paragraph(html.escape(str(text)), self.styles[style])

    def _lines(self, lines: List[str]) -> list:
        return [self._para(line) for line in lines]

    def render_invoice(self, invoice: Dict[str, Any]) -> bytes:
        """Tax invoice with line items, VAT and the amount in words"""
        vendor = invoice["vendor"]
        vendee = invoice["vendee"]
        summary = invoice["summary"]
        story = []

        # ---------------- Header ----------------
        story.append(self._para(vendor["name"], "Title"))
        story += self._lines([
            f"P.O. Box {vendor['po_box']}, {vendor['address']}",
            f"Tel: {vendor['phone']} | TRN: {vendor['trn']}",
        ])
        story.append(Spacer(1, 12))
        story.append(self._para("TAX INVOICE", "Heading1"))
        story += self._lines([
            f"Invoice No: {invoice['invoice_number']}",
            f"Date: {invoice['date']}",
            f"Order No: {invoice['order_number']}",
            f"Payment Terms: {invoice['payment_terms']}",
        ])
        story.append(Spacer(1, 12))

        # ---------------- Vendee ----------------
        story.append(self._para("Bill To", "Heading2"))
        story += self._lines([
            vendee["name"],
            f"Attn: {vendee['contact_person']}",
            f"P.O. Box {vendee['po_box']}, {vendee['address']}",
            f"Tel: {vendee['phone']} | TRN: {vendee['trn']}",
            f"GRN: {vendee['grn_number']} | Supplier No: {vendee['supplier_number']}",
            f"Service Period: {vendee['service_period']}",
        ])
        story.append(Spacer(1, 12))
        story.append(self._para(f"Subject: {invoice['subject']}"))
        story.append(Spacer(1, 12))

        # ---------------- Items ----------------
        data = [["S.No", "Description", "Qty", "Unit Price", "Total"]]
        for product in invoice["products"]:
            data.append([
                product["sno"],
                self._para(product["description"]),
                product["qty"],
                money(product["unit_price"]),
                money(product["total"]),
            ])
        data += [
            ["", "", "", "Amount", money(summary["amount"])],
            ["", "", "", f"VAT {summary['vat_percentage']:g}%", money(summary["vat"])],
            ["", "", "", "Total Receivable", money(summary["total_receivable"])],
        ]
        story.append(self._table(data, [40, 245, 40, 90, 90]))
        story.append(Spacer(1, 12))

        story.append(self._para(f"Amount in words: {invoice['amount_in_words']}"))
        story.append(Spacer(1, 24))
        prepared_by = invoice["prepared_by"]
        story.append(self._para(f"Prepared by: {prepared_by['name']}"))

        return self._build("invoice", story)

    def render_completion_certificate(self, completion: Dict[str, Any]) -> bytes:
        """Work completion certificate with handover and site pictures"""
        story = []

        story.append(self._para("COMPLETION CERTIFICATE", "Title"))
        story.append(Spacer(1, 12))
        story += self._lines([
            f"Reference: {completion['reference_number']}",
            f"FM Contractor: {completion['fm_contractor']}",
            f"Sub Contractor: {completion['sub_contractor']}",
            f"Project: {completion['project_name']}",
            f"Description: {completion['project_description']}",
            f"Location: {completion['location']}",
            f"LPO: {completion['lpo_number']} ({completion['lpo_date']})",
            f"Completion Date: {completion['completion_date']}",
        ])
        story.append(Spacer(1, 16))

        handover = completion["handover"]
        acceptance = completion["acceptance"]
        data = [
            ["", "Handed over by", "Accepted by"],
            ["Company", handover["company"], acceptance["company"]],
            ["Name", handover["name"], acceptance["name"]],
            ["Date", handover["date"], acceptance["date"]],
            ["Signature", "", ""],
        ]
        story.append(self._table(data, [80, 220, 220], numeric=False))

        if completion["site_pictures"]:
            story.append(Spacer(1, 16))
            story.append(self._para("Site Pictures", "Heading2"))
            data = [["#", "Caption", "Link"]]
            for index, picture in enumerate(completion["site_pictures"], start=1):
                data.append([
                    index,
                    self._para(picture["caption"]),
                    self._para(picture["url"]),
                ])
            story.append(self._table(data, [30, 170, 320], numeric=False))

        return self._build("completion_certificate", story)

    def render_expense_report(self, report: Dict[str, Any]) -> bytes:
        """Expense report with materials, labor and profit"""
        project = report["project"]
        totals = report["totals"]
        story = []

        story.append(self._para(f"Expense Report - {project['name']}", "Title"))
        story += self._lines([
            f"Project No: {project['project_number']}",
            f"Client: {project['client_name']}",
            f"Location: {project['location']}",
            f"Generated: {report['generated_at']}",
        ])
        story.append(Spacer(1, 16))

        # ---------------- Materials ----------------
        story.append(self._para("Materials", "Heading2"))
        data = [["Description", "Date", "Invoice No", "Supplier", "Amount"]]
        for material in report["materials"]:
            data.append([
                self._para(material["description"]),
                material.get("date") or "-",
                material.get("invoice_no") or "-",
                material.get("supplier_name") or "-",
                money(material.get("amount")),
            ])
        story.append(self._table(data, [170, 70, 80, 120, 75]))
        story.append(Spacer(1, 16))

        # ---------------- Labor ----------------
        story.append(self._para("Labor", "Heading2"))
        data = [["Name", "Role", "Days", "Daily Salary", "Total"]]
        for entry in report["labor"]:
            data.append([
                entry["name"],
                entry["role"],
                entry["days_present"],
                money(entry["daily_salary"]),
                money(entry["total_salary"]),
            ])
        story.append(self._table(data, [170, 70, 60, 110, 105]))
        story.append(Spacer(1, 16))

        # ---------------- Totals ----------------
        data = [
            ["Item", "Amount"],
            ["Material cost", money(totals["material_cost"])],
            ["Labor cost", money(totals["labor_cost"])],
            ["Total expense", money(totals["total_expense"])],
            ["Quotation amount", money(totals["quotation_amount"])],
            ["Profit / Loss", money(totals["profit"])],
            ["Profit %", f"{totals['profit_percentage']:.2f}%"],
        ]
        story.append(self._table(data, [300, 215]))

        return self._build("expense_report", story)


def get_pdf_renderer() -> PdfRenderer:
    """FastAPI dependency for the PDF renderer"""
    return PdfRenderer()
