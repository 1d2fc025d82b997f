"""Quotation and LPO service"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.exceptions import NotFound, UpstreamFailure, ValidationError
from backoffice.models import LPO, Project, Quotation, User
from backoffice.schemas.quotation import QuotationCreate, QuotationItem, QuotationUpdate
from backoffice.services.document_numbers import related_document_number
from backoffice.services.s3_service import (
    FileTooLargeError,
    FileUpload,
    InvalidFileTypeError,
    S3Service,
    S3ServiceError,
)

logger = logging.getLogger(__name__)

QUOTATION_PREFIX = "QTN"


def price_items(items: Sequence[QuotationItem], vat_percentage: float) -> Dict[str, Any]:
    """
    Compute line totals, subtotal, VAT and net amount.

    Returns:
        Dict with ``items``, ``subtotal``, ``vat_amount`` and ``net_amount``
    """
    priced: List[Dict[str, Any]] = []
    for item in items:
        line = item.model_dump()
        line["total_price"] = round(item.quantity * item.unit_price, 2)
        priced.append(line)

    subtotal = round(sum(line["total_price"] for line in priced), 2)
    vat_amount = round(subtotal * vat_percentage / 100, 2)
    return {
        "items": priced,
        "subtotal": subtotal,
        "vat_amount": vat_amount,
        "net_amount": round(subtotal + vat_amount, 2),
    }


class QuotationService:
    """One quotation and one LPO per project"""

    def __init__(self, db: AsyncSession, storage: Optional[S3Service] = None):
        self.db = db
        self.storage = storage

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project with id {project_id} not found")
        return project

    async def get_quotation(self, project_id: UUID) -> Quotation:
        result = await self.db.execute(
            select(Quotation).where(Quotation.project_id == project_id)
        )
        quotation = result.scalar_one_or_none()
        if not quotation:
            raise NotFound("Quotation not found for this project")
        return quotation

    async def create_quotation(self, project_id: UUID, data: QuotationCreate, user: User) -> Quotation:
        """
        Create the project's quotation with server-computed totals.

        Raises:
            ValidationError: If the project already has a quotation
        """
        project = await self._get_project(project_id)

        existing = await self.db.execute(
            select(Quotation.id).where(Quotation.project_id == project_id)
        )
        if existing.first():
            raise ValidationError("Quotation already exists for this project")

        vat_percentage = (
            data.vat_percentage if data.vat_percentage is not None else settings.vat_percentage
        )
        quotation = Quotation(
            project_id=project.id,
            quotation_number=related_document_number(project.project_number, QUOTATION_PREFIX),
            scope_of_work=data.scope_of_work,
            vat_percentage=vat_percentage,
            created_by_id=user.id,
            **price_items(data.items, vat_percentage),
        )
        self.db.add(quotation)
        await self.db.commit()
        await self.db.refresh(quotation)

        logger.info(f"Created quotation {quotation.quotation_number}: net {quotation.net_amount}")
        return quotation

    async def update_quotation(self, project_id: UUID, data: QuotationUpdate) -> Quotation:
        quotation = await self.get_quotation(project_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("scope_of_work") is not None:
            quotation.scope_of_work = data.scope_of_work
        if update_data.get("vat_percentage") is not None:
            quotation.vat_percentage = data.vat_percentage

        items = data.items if data.items is not None else [
            QuotationItem(**item) for item in quotation.items
        ]
        for field, value in price_items(items, quotation.vat_percentage).items():
            setattr(quotation, field, value)

        await self.db.commit()
        await self.db.refresh(quotation)
        return quotation

    async def get_lpo(self, project_id: UUID) -> LPO:
        result = await self.db.execute(select(LPO).where(LPO.project_id == project_id))
        lpo = result.scalar_one_or_none()
        if not lpo:
            raise NotFound("LPO not found for this project")
        return lpo

    async def create_lpo(
        self,
        project_id: UUID,
        lpo_number: str,
        lpo_date: date,
        supplier: Optional[str],
        document: Optional[FileUpload],
        user: User,
    ) -> LPO:
        """
        Record the client's purchase order, optionally with its document.

        Raises:
            ValidationError: If an LPO already exists or the document is invalid
            UpstreamFailure: If the document cannot be stored
        """
        project = await self._get_project(project_id)

        existing = await self.db.execute(select(LPO.id).where(LPO.project_id == project_id))
        if existing.first():
            raise ValidationError("LPO already exists for this project")

        stored: Dict[str, Optional[str]] = {"url": None, "key": None}
        if document is not None:
            try:
                stored = await self.storage.upload_file_async(
                    document.data, S3Service.LPO_DOCUMENTS, document.filename, document.content_type
                )
            except (InvalidFileTypeError, FileTooLargeError) as e:
                raise ValidationError(str(e))
            except S3ServiceError as e:
                raise UpstreamFailure(f"Failed to upload LPO document: {e}")

        lpo = LPO(
            project_id=project.id,
            lpo_number=lpo_number,
            lpo_date=lpo_date,
            supplier=supplier,
            document_url=stored["url"],
            document_key=stored["key"],
            created_by_id=user.id,
        )
        self.db.add(lpo)
        await self.db.commit()
        await self.db.refresh(lpo)

        logger.info(f"Recorded LPO {lpo_number} for project {project.project_number}")
        return lpo
