"""Work completion certificate data"""

from typing import Dict, Any
from uuid import UUID
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.exceptions import NotFound
from backoffice.models import LPO, Project, WorkCompletion


class CompletionReportGenerator:
    """
    Generator for completion certificates.
    Produces the handover/acceptance block and the list of site pictures.
    """

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def generate_report(self, project_id: UUID) -> Dict[str, Any]:
        """
        Assemble completion certificate data for a project.

        Raises:
            NotFound: If the project does not exist
        """
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project with id {project_id} not found")

        lpo_result = await self.db.execute(select(LPO).where(LPO.project_id == project_id))
        lpo = lpo_result.scalar_one_or_none()

        completion_result = await self.db.execute(
            select(WorkCompletion).where(WorkCompletion.project_id == project_id)
        )
        completion = completion_result.scalar_one_or_none()

        now = datetime.utcnow()
        completion_date = project.updated_at or now
        client_name = project.client.client_name

        return {
            "project_id": str(project.id),
            "reference_number": (
                completion.completion_number if completion
                else f"COMP-{project.id.hex[-6:].upper()}"
            ),
            "fm_contractor": settings.company_name,
            "sub_contractor": client_name,
            "project_name": project.name,
            "project_description": project.description or "No description provided",
            "location": project.full_location,
            "completion_date": completion_date.date().isoformat(),
            "lpo_number": lpo.lpo_number if lpo else "Not available",
            "lpo_date": lpo.lpo_date.isoformat() if lpo else "Not available",
            "handover": {
                "company": settings.company_name,
                "name": (
                    project.assigned_engineer.full_name if project.assigned_engineer
                    else "Not assigned"
                ),
                "date": completion_date.date().isoformat(),
            },
            "acceptance": {
                "company": client_name,
                "name": client_name,
                "date": now.date().isoformat(),
            },
            "site_pictures": [
                {"url": image["image_url"], "caption": image["title"]}
                for image in (completion.images if completion else [])
            ],
            "prepared_by": project.created_by.full_name if project.created_by else None,
        }
