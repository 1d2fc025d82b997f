"""Invoice and completion certificate endpoints"""

from typing import Any, Dict
from uuid import UUID
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User
from backoffice.api.dependencies import OFFICE_STAFF, get_current_user, require_roles
from backoffice.reports import CompletionReportGenerator, InvoiceGenerator
from backoffice.services.pdf_service import PdfRenderer, get_pdf_renderer

router = APIRouter(prefix="/api/v1/projects", tags=["Reports"])


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{project_id}/invoice", response_model=Dict[str, Any], status_code=status.HTTP_200_OK)
async def get_invoice(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Invoice data for a project

    Requires a quotation with items and an LPO.
    """
    return await InvoiceGenerator(db).generate_invoice(project_id)


@router.get("/{project_id}/invoice/pdf", status_code=status.HTTP_200_OK)
async def get_invoice_pdf(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    invoice = await InvoiceGenerator(db).generate_invoice(project_id)
    return pdf_response(renderer.render_invoice(invoice), f"{invoice['invoice_number']}.pdf")


@router.get("/{project_id}/completion", response_model=Dict[str, Any], status_code=status.HTTP_200_OK)
async def get_completion_data(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Completion certificate data with site pictures
    """
    return await CompletionReportGenerator(db).generate_report(project_id)


@router.get("/{project_id}/completion/pdf", status_code=status.HTTP_200_OK)
async def get_completion_pdf(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
    current_user: User = Depends(get_current_user),
):
    report = await CompletionReportGenerator(db).generate_report(project_id)
    return pdf_response(
        renderer.render_completion_certificate(report),
        f"completion-certificate-{report['reference_number']}.pdf",
    )
