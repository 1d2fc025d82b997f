"""Shared response schemas"""

import math
from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Pagination metadata for list responses"""
    total: int = Field(..., description="Total number of items")
    page: int = Field(default=1, description="Current page number")
    limit: int = Field(default=10, description="Number of items per page")
    total_pages: int = 0
    has_next_page: bool = False
    has_previous_page: bool = False

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit else 0,
            has_next_page=page * limit < total,
            has_previous_page=page > 1,
        )


class MessageResponse(BaseModel):
    message: str
