"""Work completion endpoints"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.models import User
from backoffice.api.dependencies import MANAGERS, get_current_user, require_roles
from backoffice.schemas.work_completion import CompletionImage, WorkCompletionResponse
from backoffice.services.s3_service import FileUpload, S3Service, get_s3_service
from backoffice.services.work_completion_service import WorkCompletionService

router = APIRouter(prefix="/api/v1/projects", tags=["Work Completion"])


def get_work_completion_service(
    db: AsyncSession = Depends(get_db),
    storage: S3Service = Depends(get_s3_service),
) -> WorkCompletionService:
    return WorkCompletionService(db, storage)


@router.post("/{project_id}/work-completion", response_model=WorkCompletionResponse, status_code=status.HTTP_201_CREATED)
async def create_work_completion(
    project_id: UUID,
    service: WorkCompletionService = Depends(get_work_completion_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    """
    Create the completion record of a project (returns the existing one if present)
    """
    completion = await service.get_or_create_completion(project_id, current_user)
    return WorkCompletionResponse.model_validate(completion)


@router.get("/{project_id}/work-completion", response_model=WorkCompletionResponse, status_code=status.HTTP_200_OK)
async def get_work_completion(
    project_id: UUID,
    service: WorkCompletionService = Depends(get_work_completion_service),
    current_user: User = Depends(get_current_user),
):
    completion = await service.get_completion(project_id)
    return WorkCompletionResponse.model_validate(completion)


@router.post("/{project_id}/work-completion/images", response_model=WorkCompletionResponse, status_code=status.HTTP_201_CREATED)
async def upload_completion_images(
    project_id: UUID,
    files: List[UploadFile] = File(...),
    titles: List[str] = Form(...),
    descriptions: Optional[List[str]] = Form(None),
    service: WorkCompletionService = Depends(get_work_completion_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    """
    Upload completion pictures; one ``titles`` entry per file
    """
    uploads = []
    for upload in files:
        try:
            uploads.append(FileUpload(
                filename=upload.filename or "image",
                content_type=upload.content_type or "application/octet-stream",
                data=await upload.read(),
            ))
        finally:
            await upload.close()

    completion = await service.upload_images(
        project_id, uploads, titles, descriptions or [], current_user
    )
    return WorkCompletionResponse.model_validate(completion)


@router.get("/{project_id}/work-completion/images", response_model=List[CompletionImage], status_code=status.HTTP_200_OK)
async def list_completion_images(
    project_id: UUID,
    service: WorkCompletionService = Depends(get_work_completion_service),
    current_user: User = Depends(get_current_user),
):
    return await service.list_images(project_id)


@router.delete("/{project_id}/work-completion/images/{image_id}", response_model=WorkCompletionResponse, status_code=status.HTTP_200_OK)
async def delete_completion_image(
    project_id: UUID,
    image_id: str,
    service: WorkCompletionService = Depends(get_work_completion_service),
    current_user: User = Depends(require_roles(*MANAGERS)),
):
    completion = await service.delete_image(project_id, image_id)
    return WorkCompletionResponse.model_validate(completion)
