"""Quotation and LPO endpoints"""

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User
from backoffice.api.dependencies import OFFICE_STAFF, get_current_user, require_roles
from backoffice.schemas.quotation import (
    LPOResponse,
    QuotationCreate,
    QuotationResponse,
    QuotationUpdate,
)
from backoffice.services.quotation_service import QuotationService
from backoffice.services.s3_service import FileUpload, S3Service, get_s3_service

router = APIRouter(prefix="/api/v1/projects", tags=["Quotations"])


@router.post("/{project_id}/quotation", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_quotation(
    project_id: UUID,
    payload: QuotationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Create the project's quotation; totals and VAT are computed from the items
    """
    quotation = await QuotationService(db).create_quotation(project_id, payload, current_user)
    return QuotationResponse.model_validate(quotation)


@router.get("/{project_id}/quotation", response_model=QuotationResponse, status_code=status.HTTP_200_OK)
async def get_quotation(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return QuotationResponse.model_validate(await QuotationService(db).get_quotation(project_id))


@router.patch("/{project_id}/quotation", response_model=QuotationResponse, status_code=status.HTTP_200_OK)
async def update_quotation(
    project_id: UUID,
    payload: QuotationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    quotation = await QuotationService(db).update_quotation(project_id, payload)
    return QuotationResponse.model_validate(quotation)


@router.post("/{project_id}/lpo", response_model=LPOResponse, status_code=status.HTTP_201_CREATED)
async def create_lpo(
    project_id: UUID,
    lpo_number: str = Form(..., min_length=1),
    lpo_date: date = Form(...),
    supplier: Optional[str] = Form(None),
    document: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: S3Service = Depends(get_s3_service),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Record the client's LPO (multipart form, optional ``document`` file)
    """
    upload = None
    if document is not None:
        try:
            upload = FileUpload(
                filename=document.filename or "lpo",
                content_type=document.content_type or "application/octet-stream",
                data=await document.read(),
            )
        finally:
            await document.close()

    lpo = await QuotationService(db, storage).create_lpo(
        project_id, lpo_number, lpo_date, supplier, upload, current_user
    )
    return LPOResponse.model_validate(lpo)


@router.get("/{project_id}/lpo", response_model=LPOResponse, status_code=status.HTTP_200_OK)
async def get_lpo(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return LPOResponse.model_validate(await QuotationService(db).get_lpo(project_id))
