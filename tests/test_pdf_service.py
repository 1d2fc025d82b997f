"""Tests for PDF rendering helpers"""

import pytest

from backoffice.services.pdf_service import (
    PdfRenderer,
    amount_to_words,
    integer_to_words,
    money,
)


class TestAmountToWords:
    @pytest.mark.parametrize(
        "number, words",
        [
            (0, "Zero"),
            (7, "Seven"),
            (15, "Fifteen"),
            (40, "Forty"),
            (99, "Ninety Nine"),
            (105, "One Hundred Five"),
            (1000, "One Thousand"),
            (21_500, "Twenty One Thousand Five Hundred"),
            (3_000_012, "Three Million Twelve"),
        ],
    )
    def test_integer_to_words(self, number, words):
        assert integer_to_words(number) == words

    def test_dirhams_and_fils(self):
        assert amount_to_words(1250.5) == "One Thousand Two Hundred Fifty Dirhams and Fifty Fils"

    def test_whole_dirhams(self):
        assert amount_to_words(10500) == "Ten Thousand Five Hundred Dirhams"

    def test_fils_only(self):
        assert amount_to_words(0.25) == "Twenty Five Fils"

    def test_zero(self):
        assert amount_to_words(0) == "Zero Dirhams"

    def test_rounds_to_fils(self):
        assert amount_to_words(1.999) == "Two Dirhams"


def test_money():
    assert money(1234.5) == "1,234.50"
    assert money(None) == "0.00"


@pytest.fixture
def renderer():
    return PdfRenderer()


class TestPdfRenderer:
    def test_render_invoice(self, renderer):
        invoice = {
            "invoice_number": "INV-202401-0001",
            "date": "15-01-2024",
            "order_number": "LPO-77",
            "vendor": {
                "name": "Contractor <LLC>", "po_box": "1", "address": "Dubai",
                "phone": "04", "trn": "100",
            },
            "vendee": {
                "name": "Marina Towers", "contact_person": "Facilities", "po_box": "2",
                "address": "Dubai Marina", "phone": "050", "trn": "200",
                "grn_number": "-", "supplier_number": "S-1", "service_period": "Jan 2024",
            },
            "subject": "Lobby refurbishment",
            "payment_terms": "90 DAYS",
            "amount_in_words": amount_to_words(1050),
            "products": [
                {"sno": 1, "description": "Paint & labor", "qty": 2, "unit_price": 500, "total": 1000},
            ],
            "summary": {"amount": 1000, "vat_percentage": 5.0, "vat": 50, "total_receivable": 1050},
            "prepared_by": {"id": None, "name": "Alice Tester"},
        }

        assert renderer.render_invoice(invoice).startswith(b"%PDF")

    def test_render_completion_certificate(self, renderer):
        completion = {
            "reference_number": "WCP-202401-0001",
            "fm_contractor": "Marina Towers",
            "sub_contractor": "Contractor",
            "project_name": "Lobby",
            "project_description": "Repaint",
            "location": "Dubai Marina",
            "completion_date": "15-01-2024",
            "lpo_number": "LPO-77",
            "lpo_date": "01-01-2024",
            "handover": {"company": "Contractor", "name": "Eve", "date": "15-01-2024"},
            "acceptance": {"company": "Marina Towers", "name": "Client", "date": "15-01-2024"},
            "site_pictures": [{"url": "https://bucket.example.com/a.png", "caption": "After"}],
            "prepared_by": {"id": None, "name": "Eve"},
        }

        assert renderer.render_completion_certificate(completion).startswith(b"%PDF")

    def test_render_expense_report(self, renderer):
        report = {
            "generated_at": "15-01-2024 10:00",
            "project": {
                "id": "1", "name": "Lobby", "project_number": "PRJ-202401-0001",
                "client_name": "Marina Towers", "location": "Dubai Marina",
            },
            "materials": [{"description": "Paint", "invoice_no": "I-1", "amount": 300}],
            "labor": [
                {"name": "Walter", "role": "Worker", "days_present": 2,
                 "daily_salary": 100, "total_salary": 200},
            ],
            "totals": {
                "material_cost": 300, "labor_cost": 200, "total_expense": 500,
                "quotation_amount": 1050, "profit": 550, "profit_percentage": 52.38,
            },
        }

        assert renderer.render_expense_report(report).startswith(b"%PDF")
