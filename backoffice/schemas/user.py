"""User schemas"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator
from datetime import datetime
from uuid import UUID

from backoffice.models.user import ADMIN_ROLES, UserRole
from backoffice.schemas.common import Pagination


def check_salary(role: Optional[str], salary: Optional[float]) -> None:
    """Field roles are paid daily and must carry a positive salary"""
    if role and role not in ADMIN_ROLES and (salary is None or salary <= 0):
        raise ValueError("Salary is required for this role and must be greater than 0")


class UserCreate(BaseModel):
    """User creation schema"""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password")
    phone_numbers: list[str] = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    salary: Optional[float] = Field(None, description="Daily salary")
    address: Optional[str] = None
    account_number: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def validate_salary(self):
        check_salary(self.role.value, self.salary)
        return self


class UserUpdate(BaseModel):
    """User update schema - all fields optional"""
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    phone_numbers: Optional[list[str]] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    salary: Optional[float] = None
    is_active: Optional[bool] = None
    address: Optional[str] = None
    account_number: Optional[str] = Field(None, max_length=100)


class UserResponse(BaseModel):
    """User response schema"""
    id: UUID
    email: str
    phone_numbers: list[str]
    first_name: str
    last_name: str
    role: str
    salary: Optional[float] = None
    is_active: bool
    profile_image: Optional[str] = None
    signature_image: Optional[str] = None
    address: Optional[str] = None
    account_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination
