"""Work completion service"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound, UpstreamFailure, ValidationError
from backoffice.models import Project, User, WorkCompletion
from backoffice.services.document_numbers import related_document_number
from backoffice.services.s3_service import (
    FileTooLargeError,
    FileUpload,
    InvalidFileTypeError,
    S3Service,
    S3ServiceError,
)

logger = logging.getLogger(__name__)

COMPLETION_PREFIX = "WCP"


class WorkCompletionService:
    """Completion records and their site pictures"""

    def __init__(self, db: AsyncSession, storage: Optional[S3Service] = None):
        """Initialize with database session and object storage"""
        self.db = db
        self.storage = storage

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project with id {project_id} not found")
        return project

    async def get_completion(self, project_id: UUID) -> WorkCompletion:
        result = await self.db.execute(
            select(WorkCompletion)
            .where(WorkCompletion.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        completion = result.scalar_one_or_none()
        if not completion:
            raise NotFound(f"Work completion for project {project_id} not found")
        return completion

    async def get_or_create_completion(self, project_id: UUID, user: User) -> WorkCompletion:
        """Return the project's completion record, creating it on first use"""
        project = await self._get_project(project_id)
        try:
            return await self.get_completion(project_id)
        except NotFound:
            pass

        completion = WorkCompletion(
            project_id=project.id,
            completion_number=related_document_number(project.project_number, COMPLETION_PREFIX),
            images=[],
            created_by_id=user.id,
        )
        self.db.add(completion)
        await self.db.commit()
        await self.db.refresh(completion)

        logger.info(f"Created work completion {completion.completion_number}")
        return completion

    async def upload_images(
        self,
        project_id: UUID,
        files: Sequence[FileUpload],
        titles: Sequence[str],
        descriptions: Sequence[Optional[str]],
        user: User,
    ) -> WorkCompletion:
        """
        Upload completion pictures with one title per file.

        Raises:
            ValidationError: If there are no files or the titles do not line up
            UpstreamFailure: If storage rejects an upload
        """
        if not files:
            raise ValidationError("No files uploaded")
        if len(titles) != len(files):
            raise ValidationError("Number of titles must match number of files")
        if any(not (title or "").strip() for title in titles):
            raise ValidationError("Image titles cannot be empty")

        completion = await self.get_or_create_completion(project_id, user)

        for index, upload in enumerate(files):
            try:
                stored = await self.storage.upload_file_async(
                    upload.data,
                    S3Service.WORK_COMPLETION_IMAGES,
                    upload.filename,
                    upload.content_type,
                    S3Service.IMAGE_MIME_TYPES,
                )
            except (InvalidFileTypeError, FileTooLargeError) as e:
                raise ValidationError(f"{upload.filename}: {e}")
            except S3ServiceError as e:
                raise UpstreamFailure(f"Failed to upload image {upload.filename}: {e}")

            description = descriptions[index] if index < len(descriptions) else None
            completion.images.append({
                "id": uuid.uuid4().hex,
                "title": titles[index].strip(),
                "description": description,
                "image_url": stored["url"],
                "s3_key": stored["key"],
                "uploaded_at": datetime.utcnow().isoformat(),
            })

        await self.db.commit()
        logger.info(f"Added {len(files)} images to {completion.completion_number}")
        return await self.get_completion(project_id)

    async def list_images(self, project_id: UUID) -> List[Dict[str, Any]]:
        completion = await self.get_completion(project_id)
        return list(completion.images)

    async def delete_image(self, project_id: UUID, image_id: str) -> WorkCompletion:
        """
        Remove one picture. The stored object is deleted before the record.
        """
        completion = await self.get_completion(project_id)
        image = next((img for img in completion.images if img["id"] == image_id), None)
        if image is None:
            raise NotFound(f"Image {image_id} not found")

        try:
            await self.storage.delete_object_async(image["s3_key"])
        except S3ServiceError as e:
            raise UpstreamFailure(f"Failed to delete image {image_id}: {e}")

        completion.images.remove(image)
        await self.db.commit()
        return await self.get_completion(project_id)
