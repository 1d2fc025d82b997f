"""Expense and labor cost schemas"""

from typing import Optional
from pydantic import BaseModel, Field, EmailStr
from datetime import date as date_type, datetime
from uuid import UUID

from backoffice.schemas.common import Pagination


class LaborEntry(BaseModel):
    """Labor cost of one worker or the driver"""
    user_id: Optional[UUID] = Field(None, description="User UUID (empty when no driver is assigned)")
    first_name: str = ""
    last_name: str = ""
    profile_image: Optional[str] = None
    days_present: int = 0
    daily_salary: float = 0
    total_salary: float = 0


class LaborDetails(BaseModel):
    """Labor cost breakdown for a project"""
    workers: list[LaborEntry] = Field(default_factory=list)
    driver: LaborEntry = Field(default_factory=LaborEntry)
    total_labor_cost: float = 0


class MaterialInput(BaseModel):
    """Material line submitted with an expense"""
    description: str = Field(..., min_length=1)
    date: Optional[date_type] = None
    invoice_no: str = Field(..., min_length=1)
    amount: float
    supplier_name: Optional[str] = None
    supplier_mobile: Optional[str] = None
    supplier_email: Optional[EmailStr] = None


class Material(MaterialInput):
    """Stored material line"""
    document_url: Optional[str] = None
    document_key: Optional[str] = None


class ExpenseResponse(BaseModel):
    """Expense response schema"""
    id: UUID
    project_id: UUID
    materials: list[Material]
    labor_details: LaborDetails
    total_material_cost: float
    total_labor_cost: float
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseDetailResponse(ExpenseResponse):
    """Expense with project reference and quotation amount"""
    project_name: Optional[str] = None
    project_number: Optional[str] = None
    quotation_net_amount: Optional[float] = None


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseResponse]
    pagination: Pagination


class ExpenseSummary(BaseModel):
    """Aggregated costs across all expenses of a project"""
    total_material_cost: float = 0
    total_labor_cost: float = 0
    workers_cost: float = 0
    driver_cost: float = 0
    total_expenses: float = 0
