"""Client schemas"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from uuid import UUID

from backoffice.schemas.common import Pagination


class ClientBase(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=255)
    client_address: str = Field(..., min_length=1)
    pincode: str = Field(..., pattern=r"^\d{6}$", description="6 digit pincode")
    mobile_number: str = Field(..., min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    telephone_number: Optional[str] = Field(None, max_length=50)
    trn_number: str = Field(..., min_length=1, max_length=50)
    account_number: Optional[str] = Field(None, max_length=100)


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    """Client update schema - all fields optional"""
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_address: Optional[str] = Field(None, min_length=1)
    pincode: Optional[str] = Field(None, pattern=r"^\d{6}$")
    mobile_number: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    telephone_number: Optional[str] = Field(None, max_length=50)
    trn_number: Optional[str] = Field(None, max_length=50)
    account_number: Optional[str] = Field(None, max_length=100)


class ClientResponse(ClientBase):
    id: UUID
    email: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientListResponse(BaseModel):
    clients: list[ClientResponse]
    pagination: Pagination
