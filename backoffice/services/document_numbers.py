"""Business document numbering"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models import Project

PROJECT_PREFIX = "PRJ"


async def generate_project_number(db: AsyncSession, now: Optional[datetime] = None) -> str:
    """
    Next project number for the current month: ``PRJ-YYYYMM-NNNN``.

    The sequence restarts every month. Uniqueness is enforced by the
    ``projects.project_number`` constraint.
    """
    now = now or datetime.utcnow()
    period = f"{PROJECT_PREFIX}-{now.strftime('%Y%m')}-"

    result = await db.execute(
        select(func.max(Project.project_number)).where(
            Project.project_number.like(f"{period}%")
        )
    )
    last_number = result.scalar_one_or_none()
    sequence = int(last_number.rsplit("-", 1)[1]) + 1 if last_number else 1

    return f"{period}{sequence:04d}"


def related_document_number(project_number: str, prefix: str) -> str:
    """
    Number for a document derived from its project, e.g.
    ``PRJ-202401-0007`` with prefix ``WCP`` gives ``WCP-202401-0007``.
    """
    _, _, suffix = project_number.partition("-")
    return f"{prefix}-{suffix or project_number}"


def invoice_number(project_number: str, now: Optional[datetime] = None) -> str:
    """Invoice number ``INV-YYYYMM-<project sequence>``"""
    now = now or datetime.utcnow()
    sequence = project_number.rsplit("-", 1)[-1]
    return f"INV-{now.strftime('%Y%m')}-{sequence}"
