"""Attendance endpoints"""

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User, UserRole
from backoffice.api.dependencies import MANAGERS, get_current_user, require_roles
from backoffice.exceptions import Forbidden
from backoffice.schemas.attendance import (
    AttendanceCreate,
    AttendanceListResponse,
    AttendanceResponse,
)
from backoffice.services.attendance_service import AttendanceService

router = APIRouter(prefix="/api/v1", tags=["Attendance"])

ATTENDANCE_MARKERS = MANAGERS + (UserRole.DRIVER,)


@router.post("/attendance", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    payload: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*ATTENDANCE_MARKERS)),
):
    """
    Mark a user present or absent for a day

    Project attendance is allowed once per user, project and day.
    """
    attendance = await AttendanceService(db).mark_attendance(payload, current_user)
    return AttendanceResponse.model_validate(attendance)


@router.get("/projects/{project_id}/attendance", response_model=AttendanceListResponse, status_code=status.HTTP_200_OK)
async def list_project_attendance(
    project_id: UUID,
    on_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = await AttendanceService(db).list_project_attendance(project_id, on_date)
    return AttendanceListResponse(
        attendance=[AttendanceResponse.model_validate(r) for r in rows],
        total=len(rows),
    )


@router.get("/users/{user_id}/attendance", response_model=AttendanceListResponse, status_code=status.HTTP_200_OK)
async def list_user_attendance(
    user_id: UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Attendance history of a user

    Field staff can only read their own history.
    """
    if current_user.role in (UserRole.WORKER.value, UserRole.DRIVER.value) and current_user.id != user_id:
        raise Forbidden("You can only view your own attendance")

    rows = await AttendanceService(db).list_user_attendance(user_id, start_date, end_date)
    return AttendanceListResponse(
        attendance=[AttendanceResponse.model_validate(r) for r in rows],
        total=len(rows),
    )
