"""Labor cost aggregation for projects"""

import logging
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound
from backoffice.models import Attendance, Project, User
from backoffice.monitoring.metrics import labor_calculations_total
from backoffice.schemas.expense import LaborDetails, LaborEntry

logger = logging.getLogger(__name__)


async def count_worker_days(
    db: AsyncSession, project_id: UUID, worker_ids: list[UUID]
) -> Dict[UUID, int]:
    """
    Count present attendance rows per assigned worker on a project.

    Every row counts; rows are not de-duplicated by date.
    """
    if not worker_ids:
        return {}

    result = await db.execute(
        select(Attendance.user_id, func.count(Attendance.id))
        .where(
            Attendance.project_id == project_id,
            Attendance.present.is_(True),
            Attendance.user_id.in_(worker_ids),
        )
        .group_by(Attendance.user_id)
    )
    return {user_id: count for user_id, count in result.all()}


async def count_driver_billable_days(db: AsyncSession, project_id: UUID) -> int:
    """
    Days the driver is paid for on a project.

    This is the number of distinct calendar dates with any present
    attendance on the project, whoever it belongs to. The driver's own
    attendance is not consulted.
    """
    result = await db.execute(
        select(func.count(distinct(Attendance.date))).where(
            Attendance.project_id == project_id,
            Attendance.present.is_(True),
        )
    )
    return result.scalar_one() or 0


def _labor_entry(user: Optional[User], days_present: int) -> LaborEntry:
    if user is None:
        return LaborEntry()

    daily_salary = user.salary or 0
    return LaborEntry(
        user_id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        profile_image=user.profile_image,
        days_present=days_present,
        daily_salary=daily_salary,
        total_salary=days_present * daily_salary,
    )


class LaborCostAggregator:
    """
    Computes the worker and driver labor cost of a project from its
    current team assignment and attendance history.

    Results are never cached; every call re-reads attendance.
    """

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def calculate(self, project_id: UUID) -> LaborDetails:
        """
        Calculate the labor cost breakdown of a project.

        Args:
            project_id: UUID of the project

        Returns:
            LaborDetails with one entry per assigned worker and the driver

        Raises:
            NotFound: If the project does not exist
        """
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if not project:
            raise NotFound(f"Project with id {project_id} not found")

        workers = list(project.assigned_workers)
        worker_days = await count_worker_days(
            self.db, project_id, [worker.id for worker in workers]
        )

        worker_entries = [
            _labor_entry(worker, worker_days.get(worker.id, 0)) for worker in workers
        ]

        if project.assigned_driver is not None:
            driver_days = await count_driver_billable_days(self.db, project_id)
            driver_entry = _labor_entry(project.assigned_driver, driver_days)
        else:
            driver_entry = LaborEntry()

        total_labor_cost = (
            sum(entry.total_salary for entry in worker_entries)
            + driver_entry.total_salary
        )

        labor_calculations_total.inc()
        logger.debug(
            f"Labor cost for project {project_id}: {len(worker_entries)} workers, "
            f"driver days {driver_entry.days_present}, total {total_labor_cost}"
        )

        return LaborDetails(
            workers=worker_entries,
            driver=driver_entry,
            total_labor_cost=total_labor_cost,
        )
