"""Quotation and LPO schemas"""

from typing import Optional
from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from uuid import UUID


class QuotationItem(BaseModel):
    """Priced line of a quotation; the total is computed server-side"""
    description: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    total_price: Optional[float] = None


class QuotationCreate(BaseModel):
    items: list[QuotationItem] = Field(..., min_length=1)
    scope_of_work: list[str] = Field(default_factory=list)
    vat_percentage: Optional[float] = Field(None, ge=0, le=100, description="Defaults to the configured VAT")


class QuotationUpdate(BaseModel):
    items: Optional[list[QuotationItem]] = Field(None, min_length=1)
    scope_of_work: Optional[list[str]] = None
    vat_percentage: Optional[float] = Field(None, ge=0, le=100)


class QuotationResponse(BaseModel):
    id: UUID
    project_id: UUID
    quotation_number: str
    items: list[QuotationItem]
    scope_of_work: list[str]
    subtotal: float
    vat_percentage: float
    vat_amount: float
    net_amount: float
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LPOResponse(BaseModel):
    id: UUID
    project_id: UUID
    lpo_number: str
    lpo_date: date_type
    supplier: Optional[str] = None
    document_url: Optional[str] = None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
