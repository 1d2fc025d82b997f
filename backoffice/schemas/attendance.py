"""Attendance schemas"""

from typing import Optional
from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from uuid import UUID

from backoffice.models.attendance import AttendanceType
from backoffice.schemas.project import UserSummary


class AttendanceCreate(BaseModel):
    """Attendance marking request"""
    user_id: UUID = Field(..., description="User whose attendance is marked")
    project_id: Optional[UUID] = Field(None, description="Required for project attendance")
    date: Optional[date_type] = Field(None, description="Defaults to today")
    present: bool = True
    type: AttendanceType = AttendanceType.PROJECT


class AttendanceResponse(BaseModel):
    id: UUID
    project_id: Optional[UUID] = None
    user_id: UUID
    date: date_type
    present: bool
    type: str
    marked_by_id: UUID
    user: Optional[UserSummary] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AttendanceListResponse(BaseModel):
    attendance: list[AttendanceResponse]
    total: int
