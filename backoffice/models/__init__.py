"""Database models package"""

from backoffice.models.base import BaseModel
from backoffice.models.user import User, UserRole, ADMIN_ROLES
from backoffice.models.client import Client
from backoffice.models.project import Project, ProjectStatus, project_workers
from backoffice.models.attendance import Attendance, AttendanceType
from backoffice.models.expense import Expense
from backoffice.models.quotation import Quotation, LPO
from backoffice.models.comment import Comment, CommentAction
from backoffice.models.work_completion import WorkCompletion

# Export all models
__all__ = [
    "BaseModel",
    "User",
    "UserRole",
    "ADMIN_ROLES",
    "Client",
    "Project",
    "ProjectStatus",
    "project_workers",
    "Attendance",
    "AttendanceType",
    "Expense",
    "Quotation",
    "LPO",
    "Comment",
    "CommentAction",
    "WorkCompletion",
]
