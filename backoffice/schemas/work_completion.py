"""Work completion schemas"""

from typing import Optional
from pydantic import BaseModel
from datetime import datetime
from uuid import UUID


class CompletionImage(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    image_url: str
    s3_key: str
    uploaded_at: datetime


class WorkCompletionResponse(BaseModel):
    """Work completion record with its images"""
    id: UUID
    project_id: UUID
    completion_number: str
    images: list[CompletionImage]
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
