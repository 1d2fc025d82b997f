"""Tests for the labor cost aggregator"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound
from backoffice.models import Project, ProjectStatus, User
from backoffice.services.labor_cost_service import (
    LaborCostAggregator,
    count_driver_billable_days,
    count_worker_days,
)

from tests.conftest import add_attendance, make_project


@pytest.mark.asyncio
class TestLaborCostAggregator:
    """Test LaborCostAggregator.calculate"""

    async def test_worker_and_driver_totals(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        driver_user: User,
        admin_user: User,
        days,
    ):
        """Two workers, driver paid per distinct project date"""
        walter, wendy = workers
        d1, d2 = days(2)
        await add_attendance(db_session, staffed_project, walter, d1, admin_user)
        await add_attendance(db_session, staffed_project, walter, d2, admin_user)
        await add_attendance(db_session, staffed_project, wendy, d1, admin_user)

        labor = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        by_user = {entry.user_id: entry for entry in labor.workers}
        assert by_user[walter.id].days_present == 2
        assert by_user[walter.id].total_salary == 200
        assert by_user[wendy.id].days_present == 1
        assert by_user[wendy.id].total_salary == 50

        # Driver never marked personally but is paid for d1 and d2
        assert labor.driver.user_id == driver_user.id
        assert labor.driver.days_present == 2
        assert labor.driver.total_salary == 60
        assert labor.total_labor_cost == 310

    async def test_absent_rows_are_ignored(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        walter, _ = workers
        d1, d2 = days(2)
        await add_attendance(db_session, staffed_project, walter, d1, admin_user)
        await add_attendance(db_session, staffed_project, walter, d2, admin_user, present=False)

        labor = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        assert labor.workers[0].days_present == 1
        assert labor.driver.days_present == 1

    async def test_calculation_is_deterministic(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        for day in days(3):
            await add_attendance(db_session, staffed_project, workers[0], day, admin_user)

        aggregator = LaborCostAggregator(db_session)
        first = await aggregator.calculate(staffed_project.id)
        second = await aggregator.calculate(staffed_project.id)

        assert first.model_dump() == second.model_dump()

    async def test_worker_total_scales_linearly(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        walter = workers[0]
        all_days = days(6)
        for day in all_days[:3]:
            await add_attendance(db_session, staffed_project, walter, day, admin_user)
        before = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        for day in all_days[3:]:
            await add_attendance(db_session, staffed_project, walter, day, admin_user)
        after = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        def walter_total(labor):
            return next(e.total_salary for e in labor.workers if e.user_id == walter.id)

        assert walter_total(after) == 2 * walter_total(before)

    async def test_no_driver_assigned(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        staffed_project.assigned_driver_id = None
        await db_session.commit()
        await add_attendance(db_session, staffed_project, workers[0], days(1)[0], admin_user)

        labor = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        assert labor.driver.user_id is None
        assert labor.driver.total_salary == 0
        assert labor.total_labor_cost == 100

    async def test_unassigned_worker_attendance_is_not_costed(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        """Removing a worker drops their cost; their dates still count for the driver"""
        walter, wendy = workers
        d1, d2 = days(2)
        await add_attendance(db_session, staffed_project, walter, d1, admin_user)
        await add_attendance(db_session, staffed_project, wendy, d2, admin_user)

        staffed_project.assigned_workers = [walter]
        await db_session.commit()

        labor = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        assert [entry.user_id for entry in labor.workers] == [walter.id]
        assert labor.driver.days_present == 2
        assert labor.total_labor_cost == 100 + 2 * 30

    async def test_missing_salary_counts_as_zero(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        walter = workers[0]
        walter.salary = None
        await db_session.commit()
        await add_attendance(db_session, staffed_project, walter, days(1)[0], admin_user)

        labor = await LaborCostAggregator(db_session).calculate(staffed_project.id)

        entry = next(e for e in labor.workers if e.user_id == walter.id)
        assert entry.days_present == 1
        assert entry.total_salary == 0

    async def test_unknown_project(self, db_session: AsyncSession):
        with pytest.raises(NotFound):
            await LaborCostAggregator(db_session).calculate(uuid.uuid4())


@pytest.mark.asyncio
class TestAttendanceCounts:
    """Test the attendance count queries"""

    async def test_counts_are_scoped_to_project(
        self,
        db_session: AsyncSession,
        staffed_project: Project,
        sample_client,
        workers: list[User],
        admin_user: User,
        days,
    ):
        other = await make_project(
            db_session, sample_client, admin_user,
            status=ProjectStatus.TEAM_ASSIGNED, number="PRJ-202401-0009",
        )
        d1, d2 = days(2)
        await add_attendance(db_session, staffed_project, workers[0], d1, admin_user)
        await add_attendance(db_session, other, workers[0], d2, admin_user)

        counts = await count_worker_days(db_session, staffed_project.id, [workers[0].id])

        assert counts == {workers[0].id: 1}
        assert await count_driver_billable_days(db_session, staffed_project.id) == 1

    async def test_no_workers(self, db_session: AsyncSession, staffed_project: Project):
        assert await count_worker_days(db_session, staffed_project.id, []) == {}
