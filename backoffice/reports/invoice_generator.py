"""Tax invoice generator"""

from typing import Dict, Any, Optional
from uuid import UUID
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.exceptions import NotFound, ValidationError
from backoffice.models import LPO, Project, Quotation
from backoffice.services.document_numbers import invoice_number
from backoffice.services.pdf_service import amount_to_words

DATE_FORMAT = "%d-%m-%Y"


class InvoiceGenerator:
    """
    Generator for tax invoices.
    Combines the project, its client, the approved quotation and the LPO.
    """

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def generate_invoice(
        self, project_id: UUID, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Generate invoice data for a project.

        Args:
            project_id: UUID of the project
            now: Invoice date (defaults to the current time)

        Returns:
            Invoice dictionary

        Raises:
            NotFound: If the project, quotation or LPO is missing
            ValidationError: If the quotation has no items
        """
        now = now or datetime.utcnow()

        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project with id {project_id} not found")

        quotation = await self._one(Quotation, project_id)
        if not quotation:
            raise NotFound("Quotation not found for this project")

        lpo = await self._one(LPO, project_id)
        if not lpo:
            raise NotFound("LPO not found for this project")

        if not quotation.items:
            raise ValidationError("Quotation items are required")

        return {
            "project_id": str(project.id),
            "invoice_number": invoice_number(project.project_number, now),
            "date": now.strftime(DATE_FORMAT),
            "order_number": lpo.lpo_number,
            "vendor": self._vendor_info(),
            "vendee": self._vendee_info(project, lpo, now),
            "subject": ", ".join(quotation.scope_of_work or []) or project.name,
            "payment_terms": settings.payment_terms,
            "amount_in_words": amount_to_words(quotation.net_amount or 0),
            "products": [
                {
                    "sno": index,
                    "description": item.get("description") or "N/A",
                    "qty": item.get("quantity") or 0,
                    "unit_price": item.get("unit_price") or 0,
                    "total": item.get("total_price") or 0,
                }
                for index, item in enumerate(quotation.items, start=1)
            ],
            "summary": {
                "amount": quotation.subtotal or 0,
                "vat_percentage": quotation.vat_percentage,
                "vat": quotation.vat_amount or 0,
                "total_receivable": quotation.net_amount or 0,
            },
            "prepared_by": {
                "id": str(project.created_by_id),
                "name": project.created_by.full_name if project.created_by else "N/A",
            },
        }

    async def _one(self, model, project_id: UUID):
        result = await self.db.execute(select(model).where(model.project_id == project_id))
        return result.scalar_one_or_none()

    def _vendor_info(self) -> Dict[str, Any]:
        """Our company details"""
        return {
            "name": settings.company_name,
            "po_box": settings.company_po_box,
            "address": settings.company_address,
            "phone": settings.company_phone,
            "trn": settings.company_trn,
        }

    def _vendee_info(self, project: Project, lpo: LPO, now: datetime) -> Dict[str, Any]:
        """Client details with the service period"""
        client = project.client
        engineer = project.assigned_engineer
        return {
            "name": client.client_name,
            "contact_person": f"Mr. {engineer.full_name}" if engineer else client.client_name,
            "po_box": client.pincode,
            "address": client.client_address,
            "phone": client.mobile_number,
            "trn": client.trn_number or "N/A",
            "grn_number": lpo.lpo_number,
            "supplier_number": settings.supplier_number,
            "service_period": (
                f"{project.created_at.strftime(DATE_FORMAT)} to {now.strftime(DATE_FORMAT)}"
            ),
        }
