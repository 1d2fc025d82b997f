"""Expense and labor cost endpoints"""

from typing import Dict, List, Tuple
from uuid import UUID
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response
from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from backoffice.database import get_db
from backoffice.exceptions import ValidationError
from backoffice.models import User
from backoffice.api.dependencies import (
    ADMINS,
    OFFICE_STAFF,
    PageParams,
    require_roles,
)
from backoffice.reports import ExpenseReportGenerator
from backoffice.schemas.common import MessageResponse, Pagination
from backoffice.schemas.expense import (
    ExpenseDetailResponse,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseSummary,
    LaborDetails,
    MaterialInput,
)
from backoffice.services.expense_service import ExpenseService
from backoffice.services.labor_cost_service import LaborCostAggregator
from backoffice.services.pdf_service import PdfRenderer, get_pdf_renderer
from backoffice.services.s3_service import FileUpload, S3Service, get_s3_service

router = APIRouter(prefix="/api/v1", tags=["Expenses"])

FILE_FIELD_PREFIX = "file-"


def get_expense_service(
    db: AsyncSession = Depends(get_db),
    storage: S3Service = Depends(get_s3_service),
) -> ExpenseService:
    return ExpenseService(db, storage)


async def read_expense_form(request: Request) -> Tuple[List[MaterialInput], Dict[int, FileUpload]]:
    """
    Parse a multipart expense submission.

    The ``materials`` field holds a JSON array; the document of material
    ``i`` is sent as file field ``file-<i>``.
    """
    form = await request.form()
    raw_materials = form.get("materials")
    if not raw_materials or not isinstance(raw_materials, str):
        raise ValidationError("Materials data is required")

    try:
        materials = TypeAdapter(List[MaterialInput]).validate_json(raw_materials)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid materials data",
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        )

    files: Dict[int, FileUpload] = {}
    for key, value in form.multi_items():
        if not key.startswith(FILE_FIELD_PREFIX) or not isinstance(value, UploadFile):
            continue
        index = key[len(FILE_FIELD_PREFIX):]
        if index.isdigit() and int(index) < len(materials):
            files[int(index)] = FileUpload(
                filename=value.filename or key,
                content_type=value.content_type or "application/octet-stream",
                data=await value.read(),
            )
            await value.close()

    return materials, files


@router.get("/projects/{project_id}/labor", response_model=LaborDetails, status_code=status.HTTP_200_OK)
async def get_project_labor(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Current labor cost of a project, computed from attendance
    """
    return await LaborCostAggregator(db).calculate(project_id)


@router.post("/projects/{project_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    project_id: UUID,
    request: Request,
    service: ExpenseService = Depends(get_expense_service),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Create an expense (multipart form)

    Fields: ``materials`` (JSON array) and optional ``file-<i>`` documents.
    The current labor cost is stored with the expense.
    """
    materials, files = await read_expense_form(request)
    expense = await service.create_expense(project_id, materials, files, current_user)
    return ExpenseResponse.model_validate(expense)


@router.get("/projects/{project_id}/expenses", response_model=ExpenseListResponse, status_code=status.HTTP_200_OK)
async def list_expenses(
    project_id: UUID,
    paging: PageParams = Depends(),
    service: ExpenseService = Depends(get_expense_service),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    expenses, total = await service.list_expenses(project_id, paging.page, paging.limit)
    return ExpenseListResponse(
        expenses=[ExpenseResponse.model_validate(e) for e in expenses],
        pagination=Pagination.build(total, paging.page, paging.limit),
    )


@router.get("/projects/{project_id}/expenses/summary", response_model=ExpenseSummary, status_code=status.HTTP_200_OK)
async def get_expense_summary(
    project_id: UUID,
    service: ExpenseService = Depends(get_expense_service),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    return await service.expense_summary(project_id)


@router.get("/expenses/{expense_id}", response_model=ExpenseDetailResponse, status_code=status.HTTP_200_OK)
async def get_expense(
    expense_id: UUID,
    service: ExpenseService = Depends(get_expense_service),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    detail = await service.get_expense_detail(expense_id)
    response = ExpenseDetailResponse.model_validate(detail["expense"])
    response.project_name = detail["project_name"]
    response.project_number = detail["project_number"]
    response.quotation_net_amount = detail["quotation_net_amount"]
    return response


@router.patch("/expenses/{expense_id}", response_model=ExpenseResponse, status_code=status.HTTP_200_OK)
async def update_expense(
    expense_id: UUID,
    request: Request,
    service: ExpenseService = Depends(get_expense_service),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Replace an expense's materials and refresh its labor snapshot

    Stored documents stay with their material index unless a new
    ``file-<i>`` is sent for it.
    """
    materials, files = await read_expense_form(request)
    expense = await service.update_expense(expense_id, materials, files, current_user)
    return ExpenseResponse.model_validate(expense)


@router.delete("/expenses/{expense_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_expense(
    expense_id: UUID,
    service: ExpenseService = Depends(get_expense_service),
    current_user: User = Depends(require_roles(*ADMINS)),
):
    await service.delete_expense(expense_id)
    return MessageResponse(message="Expense deleted successfully")


@router.get("/expenses/{expense_id}/pdf", status_code=status.HTTP_200_OK)
async def get_expense_pdf(
    expense_id: UUID,
    db: AsyncSession = Depends(get_db),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
    current_user: User = Depends(require_roles(*OFFICE_STAFF)),
):
    """
    Expense report as PDF, including profit against the quotation
    """
    report = await ExpenseReportGenerator(db).generate_report(expense_id)
    pdf = renderer.render_expense_report(report)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="expense-report-{expense_id}.pdf"'
        },
    )
