"""Attendance service"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import DuplicateAttendance, NotFound, ValidationError
from backoffice.models import Attendance, AttendanceType, Project, User
from backoffice.schemas.attendance import AttendanceCreate

logger = logging.getLogger(__name__)


class AttendanceService:
    """
    Records daily presence. Rows are immutable once written; labor cost is
    derived from them on every read.
    """

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def mark_attendance(self, data: AttendanceCreate, marked_by: User) -> Attendance:
        """
        Mark a user present or absent for a day.

        Args:
            data: Attendance details; project attendance needs a project id
            marked_by: User recording the attendance

        Returns:
            Created attendance row

        Raises:
            ValidationError: If the project id is missing or the user is not on the team
            NotFound: If the user or project does not exist
            DuplicateAttendance: If project attendance already exists for that day
        """
        user = await self.db.get(User, data.user_id)
        if not user:
            raise NotFound(f"User with id {data.user_id} not found")

        attendance_date = data.date or date.today()
        project_id = None

        if data.type == AttendanceType.PROJECT:
            if not data.project_id:
                raise ValidationError("Project ID is required for project attendance")

            project = await self.db.get(Project, data.project_id)
            if not project:
                raise NotFound(f"Project with id {data.project_id} not found")

            team_ids = {worker.id for worker in project.assigned_workers}
            if project.assigned_driver_id:
                team_ids.add(project.assigned_driver_id)
            if user.id not in team_ids:
                raise ValidationError("User is not assigned to this project")

            existing = await self.db.execute(
                select(Attendance.id).where(
                    Attendance.project_id == project.id,
                    Attendance.user_id == user.id,
                    Attendance.date == attendance_date,
                    Attendance.type == AttendanceType.PROJECT.value,
                )
            )
            if existing.first():
                raise DuplicateAttendance(
                    f"Attendance already marked for {user.full_name} on {attendance_date}"
                )
            project_id = project.id

        attendance = Attendance(
            project_id=project_id,
            user_id=user.id,
            date=attendance_date,
            present=data.present,
            marked_by_id=marked_by.id,
            type=data.type.value,
        )
        self.db.add(attendance)

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against another marker for the same day
            await self.db.rollback()
            raise DuplicateAttendance(
                f"Attendance already marked for {user.full_name} on {attendance_date}"
            )

        await self.db.refresh(attendance)
        logger.info(
            f"Marked {user.id} {'present' if data.present else 'absent'} on "
            f"{attendance_date} (project {project_id})"
        )
        return attendance

    async def list_project_attendance(
        self, project_id: UUID, on_date: Optional[date] = None
    ) -> List[Attendance]:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project with id {project_id} not found")

        query = select(Attendance).where(Attendance.project_id == project_id)
        if on_date:
            query = query.where(Attendance.date == on_date)

        result = await self.db.execute(query.order_by(Attendance.date.desc()))
        return list(result.scalars().all())

    async def list_user_attendance(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Attendance]:
        """Attendance history of one user, optionally bounded by dates"""
        query = select(Attendance).where(Attendance.user_id == user_id)
        if start_date:
            query = query.where(Attendance.date >= start_date)
        if end_date:
            query = query.where(Attendance.date <= end_date)

        result = await self.db.execute(query.order_by(Attendance.date.desc()))
        return list(result.scalars().all())
