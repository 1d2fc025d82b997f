"""Project management endpoints"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User
from backoffice.models.project import ProjectStatus
from backoffice.api.dependencies import (
    ADMINS,
    MANAGERS,
    PageParams,
    get_current_user,
    require_roles,
)
from backoffice.schemas.common import MessageResponse, Pagination
from backoffice.schemas.project import (
    EngineerAssignment,
    ProgressUpdateResponse,
    ProjectCreate,
    ProjectDetailResponse,
    ProjectListResponse,
    ProjectProgressUpdate,
    ProjectResponse,
    ProjectStatusUpdate,
    ProjectUpdate,
    TeamAssignment,
    TeamResponse,
    TeamUpdate,
)
from backoffice.services.notification_service import (
    NotificationService,
    get_notification_service,
)
from backoffice.services.project_service import ProjectService

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])


def get_project_service(
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> ProjectService:
    return ProjectService(db, notifications)


async def _detail_response(service: ProjectService, project_id: UUID) -> ProjectDetailResponse:
    detail = await service.get_project_detail(project_id)
    response = ProjectDetailResponse.model_validate(detail["project"])
    response.quotation_id = detail["quotation_id"]
    response.lpo_id = detail["lpo_id"]
    response.expense_id = detail["expense_id"]
    response.allowed_transitions = detail["allowed_transitions"]
    return response


@router.post("", response_model=ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    """
    Create a new project in draft status
    """
    project = await service.create_project(payload, current_user)
    return await _detail_response(service, project.id)


@router.get("", response_model=ProjectListResponse, status_code=status.HTTP_200_OK)
async def list_projects(
    paging: PageParams = Depends(),
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    client_id: Optional[UUID] = Query(None),
    engineer_id: Optional[UUID] = Query(None),
    driver_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(get_current_user),
):
    """
    Get a paginated list of projects

    Search matches name, description, location, building, apartment
    number and project number.
    """
    projects, total = await service.list_projects(
        page=paging.page,
        limit=paging.limit,
        status=status_filter.value if status_filter else None,
        client_id=client_id,
        search=search,
        engineer_id=engineer_id,
        driver_id=driver_id,
    )
    return ProjectListResponse(
        projects=[ProjectResponse.model_validate(p) for p in projects],
        pagination=Pagination.build(total, paging.page, paging.limit),
    )


@router.get("/{project_id}", response_model=ProjectDetailResponse, status_code=status.HTTP_200_OK)
async def get_project(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(get_current_user),
):
    """
    Get detailed information about a specific project

    Includes assignments, linked document ids and the statuses reachable
    from the current one.
    """
    return await _detail_response(service, project_id)


@router.patch("/{project_id}", response_model=ProjectDetailResponse, status_code=status.HTTP_200_OK)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    await service.update_project(project_id, payload, current_user)
    return await _detail_response(service, project_id)


@router.delete("/{project_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_project(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*ADMINS)),
):
    """
    Delete a project (draft projects only)
    """
    await service.delete_project(project_id)
    return MessageResponse(message="Project deleted successfully")


@router.patch("/{project_id}/status", response_model=ProjectDetailResponse, status_code=status.HTTP_200_OK)
async def update_project_status(
    project_id: UUID,
    payload: ProjectStatusUpdate,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    """
    Move a project to a new status

    The move must be allowed by the transition table.
    """
    await service.update_status(project_id, payload.status.value, current_user)
    return await _detail_response(service, project_id)


@router.post("/{project_id}/progress", response_model=ProjectDetailResponse, status_code=status.HTTP_200_OK)
async def update_project_progress(
    project_id: UUID,
    payload: ProjectProgressUpdate,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(get_current_user),
):
    """
    Update project progress

    Starting progress moves a team_assigned project to work_started and
    then in_progress; 100% marks the work completed.
    """
    await service.update_progress(project_id, payload.progress, payload.comment, current_user)
    return await _detail_response(service, project_id)


@router.get("/{project_id}/progress", response_model=list[ProgressUpdateResponse], status_code=status.HTTP_200_OK)
async def list_progress_updates(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(get_current_user),
):
    comments = await service.list_progress_updates(project_id)
    return [ProgressUpdateResponse.model_validate(c) for c in comments]


@router.post("/{project_id}/assign", response_model=ProjectDetailResponse, status_code=status.HTTP_200_OK)
async def assign_engineer(
    project_id: UUID,
    payload: EngineerAssignment,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*ADMINS)),
):
    """
    Assign the responsible engineer
    """
    await service.assign_engineer(project_id, payload.engineer_id, current_user)
    return await _detail_response(service, project_id)


@router.post("/{project_id}/team", response_model=ProjectDetailResponse, status_code=status.HTTP_200_OK)
async def assign_team(
    project_id: UUID,
    payload: TeamAssignment,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    """
    Assign workers and a driver (project must be in lpo_received)
    """
    await service.assign_team(project_id, payload.workers, payload.driver_id, current_user)
    return await _detail_response(service, project_id)


@router.get("/{project_id}/team", response_model=TeamResponse, status_code=status.HTTP_200_OK)
async def get_team(
    project_id: UUID,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(get_current_user),
):
    team = await service.get_team(project_id)
    return TeamResponse.model_validate(team, from_attributes=True)


@router.patch("/{project_id}/team", response_model=TeamResponse, status_code=status.HTTP_200_OK)
async def update_team(
    project_id: UUID,
    payload: TeamUpdate,
    service: ProjectService = Depends(get_project_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    """
    Replace workers and/or driver; send ``"driver_id": null`` to clear the driver
    """
    await service.update_team(project_id, payload, current_user)
    team = await service.get_team(project_id)
    return TeamResponse.model_validate(team, from_attributes=True)
