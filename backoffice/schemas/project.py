"""Project schemas"""

from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID

from backoffice.models.project import ProjectStatus
from backoffice.schemas.common import Pagination


class UserSummary(BaseModel):
    """Compact user reference embedded in project responses"""
    id: UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    profile_image: Optional[str] = None

    class Config:
        from_attributes = True


class ClientSummary(BaseModel):
    id: UUID
    client_name: str
    client_address: Optional[str] = None
    mobile_number: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectBase(BaseModel):
    """Base project schema"""
    name: str = Field(..., min_length=1, max_length=100, description="Project name")
    description: Optional[str] = Field(None, max_length=500, description="Project description")
    location: str = Field(..., min_length=1, max_length=255)
    building: str = Field(..., min_length=1, max_length=255)
    apartment_number: str = Field(..., min_length=1, max_length=100)


class ProjectCreate(ProjectBase):
    """Project creation schema"""
    client_id: UUID = Field(..., description="Client UUID")


class ProjectUpdate(BaseModel):
    """Project update schema - all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    building: Optional[str] = Field(None, min_length=1, max_length=255)
    apartment_number: Optional[str] = Field(None, min_length=1, max_length=100)
    client_id: Optional[UUID] = None
    status: Optional[ProjectStatus] = Field(None, description="Target project status")
    progress: Optional[int] = Field(None, description="Progress percentage (0-100)")


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus = Field(..., description="Target project status")


class ProjectProgressUpdate(BaseModel):
    progress: int = Field(..., description="Progress percentage (0-100)")
    comment: Optional[str] = Field(None, max_length=1000)


class EngineerAssignment(BaseModel):
    engineer_id: UUID


class TeamAssignment(BaseModel):
    """Initial worker and driver assignment"""
    workers: list[UUID] = Field(..., min_length=1)
    driver_id: UUID


class TeamUpdate(BaseModel):
    """Partial team update; an explicit null driver clears it"""
    workers: Optional[list[UUID]] = None
    driver_id: Optional[UUID] = None


class ProjectResponse(ProjectBase):
    """Project response schema"""
    id: UUID
    project_number: str
    client_id: UUID
    status: str
    progress: int
    created_by_id: UUID
    updated_by_id: Optional[UUID] = None
    assigned_engineer_id: Optional[UUID] = None
    assigned_driver_id: Optional[UUID] = None
    client: Optional[ClientSummary] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectDetailResponse(ProjectResponse):
    """Detailed project response with assignments and linked documents"""
    assigned_engineer: Optional[UserSummary] = None
    assigned_driver: Optional[UserSummary] = None
    assigned_workers: list[UserSummary] = Field(default_factory=list)
    quotation_id: Optional[UUID] = None
    lpo_id: Optional[UUID] = None
    expense_id: Optional[UUID] = None
    allowed_transitions: list[str] = Field(default_factory=list)


class ProjectListResponse(BaseModel):
    """List of projects response"""
    projects: list[ProjectResponse]
    pagination: Pagination


class TeamResponse(BaseModel):
    workers: list[UserSummary]
    driver: Optional[UserSummary] = None


class ProgressUpdateResponse(BaseModel):
    id: UUID
    content: str
    progress: Optional[int] = None
    action_type: str
    user: Optional[UserSummary] = None
    created_at: datetime

    class Config:
        from_attributes = True
