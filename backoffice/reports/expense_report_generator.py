"""Expense report generator"""

from typing import Dict, Any, List
from uuid import UUID
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound
from backoffice.models import Expense, Quotation


class ExpenseReportGenerator:
    """
    Generator for expense reports.
    Produces material and labor lines with the profit against the quotation.
    """

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def generate_report(self, expense_id: UUID) -> Dict[str, Any]:
        """
        Generate the report of one expense record.

        The labor figures come from the stored snapshot, not from current
        attendance.

        Raises:
            NotFound: If the expense does not exist
        """
        expense = await self.db.get(Expense, expense_id)
        if not expense:
            raise NotFound(f"Expense with id {expense_id} not found")

        project = expense.project
        result = await self.db.execute(
            select(Quotation.net_amount).where(Quotation.project_id == project.id)
        )
        quotation_amount = result.scalar_one_or_none() or 0

        material_cost = expense.total_material_cost or 0
        labor_cost = expense.total_labor_cost or 0

        return {
            "report_type": "expense",
            "generated_at": datetime.utcnow().strftime("%d-%m-%Y %H:%M"),
            "project": {
                "id": str(project.id),
                "name": project.name,
                "project_number": project.project_number,
                "client_name": project.client.client_name if project.client else "N/A",
                "location": project.full_location,
            },
            "materials": expense.materials or [],
            "labor": self._format_labor(expense.labor_details or {}),
            "totals": self._calculate_totals(material_cost, labor_cost, quotation_amount),
        }

    def _format_labor(self, labor_details: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Flatten worker and driver entries into report rows"""
        rows = [
            {**self._labor_row(worker), "role": "Worker"}
            for worker in labor_details.get("workers", [])
        ]
        driver = labor_details.get("driver") or {}
        if driver.get("user_id"):
            rows.append({**self._labor_row(driver), "role": "Driver"})
        return rows

    def _labor_row(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "name": f"{entry.get('first_name', '')} {entry.get('last_name', '')}".strip(),
            "days_present": entry.get("days_present", 0),
            "daily_salary": entry.get("daily_salary", 0),
            "total_salary": entry.get("total_salary", 0),
        }

    def _calculate_totals(
        self, material_cost: float, labor_cost: float, quotation_amount: float
    ) -> Dict[str, float]:
        """Profit is the quotation net amount minus all expenses"""
        total_expense = material_cost + labor_cost
        profit = quotation_amount - total_expense
        return {
            "material_cost": material_cost,
            "labor_cost": labor_cost,
            "total_expense": total_expense,
            "quotation_amount": quotation_amount,
            "profit": profit,
            "profit_percentage": (profit / quotation_amount * 100) if quotation_amount else 0.0,
        }
