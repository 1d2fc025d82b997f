"""Report generation package"""

from backoffice.reports.invoice_generator import InvoiceGenerator
from backoffice.reports.completion_report_generator import CompletionReportGenerator
from backoffice.reports.expense_report_generator import ExpenseReportGenerator

__all__ = [
    "InvoiceGenerator",
    "CompletionReportGenerator",
    "ExpenseReportGenerator",
]
