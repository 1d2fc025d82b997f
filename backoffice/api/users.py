"""User management endpoints"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, UploadFile, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User, UserRole
from backoffice.models.user import ADMIN_ROLES
from backoffice.api.dependencies import (
    ADMINS,
    MANAGERS,
    PageParams,
    get_current_user,
    require_roles,
)
from backoffice.exceptions import Forbidden
from backoffice.schemas.common import Pagination
from backoffice.schemas.user import UserCreate, UserListResponse, UserResponse, UserUpdate
from backoffice.services.s3_service import FileUpload, S3Service, get_s3_service
from backoffice.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def ensure_self_or_admin(current_user: User, user_id: UUID) -> None:
    if current_user.id != user_id and current_user.role not in ADMIN_ROLES:
        raise Forbidden("Forbidden: Insufficient permissions")


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMINS)),
):
    """
    Create a user

    Salary (daily) is required for every role except admins.
    """
    user = await UserService(db).create_user(payload, current_user)
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse, status_code=status.HTTP_200_OK)
async def list_users(
    paging: PageParams = Depends(),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    users, total = await UserService(db).list_users(
        paging.page, paging.limit, role.value if role else None, is_active, search
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination.build(total, paging.page, paging.limit),
    )


@router.get("/engineers", response_model=list[UserResponse], status_code=status.HTTP_200_OK)
async def list_active_engineers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    users = await UserService(db).list_active_by_role(UserRole.ENGINEER)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/drivers", response_model=list[UserResponse], status_code=status.HTTP_200_OK)
async def list_active_drivers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    users = await UserService(db).list_active_by_role(UserRole.DRIVER)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/workers", response_model=list[UserResponse], status_code=status.HTTP_200_OK)
async def list_active_workers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    users = await UserService(db).list_active_by_role(UserRole.WORKER)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.get("/{user_id}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_self_or_admin(current_user, user_id)
    return UserResponse.model_validate(await UserService(db).get_user(user_id))


@router.patch("/{user_id}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update a user (self or admin); only admins may change role, salary or status
    """
    ensure_self_or_admin(current_user, user_id)
    privileged = {"role", "salary", "is_active"} & payload.model_fields_set
    if privileged and current_user.role not in ADMIN_ROLES:
        raise Forbidden(f"Only admins can change {', '.join(sorted(privileged))}")

    user = await UserService(db).update_user(user_id, payload)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def deactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMINS)),
):
    """
    Deactivate a user account
    """
    user = await UserService(db).deactivate_user(user_id, current_user)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/{kind}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def upload_user_image(
    user_id: UUID,
    kind: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: S3Service = Depends(get_s3_service),
    current_user: User = Depends(get_current_user),
):
    """
    Upload a profile image (``profile-image``) or signature (``signature``)
    """
    ensure_self_or_admin(current_user, user_id)
    try:
        upload = FileUpload(
            filename=file.filename or kind,
            content_type=file.content_type or "application/octet-stream",
            data=await file.read(),
        )
    finally:
        await file.close()

    user = await UserService(db, storage).set_image(user_id, kind, upload)
    return UserResponse.model_validate(user)
