"""API schemas package"""

from .common import Pagination, MessageResponse
from .project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectDetailResponse,
)
from .expense import LaborEntry, LaborDetails, MaterialInput, Material, ExpenseResponse

__all__ = [
    "Pagination",
    "MessageResponse",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectResponse",
    "ProjectDetailResponse",
    "LaborEntry",
    "LaborDetails",
    "MaterialInput",
    "Material",
    "ExpenseResponse",
]
