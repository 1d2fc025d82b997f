"""User management service"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound, UpstreamFailure, ValidationError
from backoffice.models import ADMIN_ROLES, User, UserRole
from backoffice.schemas.user import UserCreate, UserUpdate, check_salary
from backoffice.services.auth_service import AuthService
from backoffice.services.s3_service import (
    FileTooLargeError,
    FileUpload,
    InvalidFileTypeError,
    S3Service,
    S3ServiceError,
)

logger = logging.getLogger(__name__)

# User column holding each uploadable image kind
IMAGE_FIELDS = {
    "profile-image": ("profile_image", S3Service.PROFILE_IMAGES),
    "signature": ("signature_image", S3Service.SIGNATURE_IMAGES),
}

REQUIRED_FIELDS = ("email", "phone_numbers", "first_name", "last_name", "role", "is_active")


class UserService:
    """Staff and field personnel accounts"""

    def __init__(self, db: AsyncSession, storage: Optional[S3Service] = None):
        self.db = db
        self.storage = storage

    async def get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFound(f"User with id {user_id} not found")
        return user

    async def _ensure_email_available(self, email: str, exclude_id: Optional[UUID] = None) -> None:
        query = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id:
            query = query.where(User.id != exclude_id)
        result = await self.db.execute(query)
        if result.first():
            raise ValidationError("Email already in use")

    async def create_user(self, data: UserCreate, created_by: Optional[User]) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Admin roles carry no salary.
        """
        await self._ensure_email_available(data.email)

        payload = data.model_dump(exclude={"password"})
        payload["role"] = data.role.value
        if payload["role"] in ADMIN_ROLES:
            payload["salary"] = None

        user = User(
            **payload,
            password_hash=AuthService.hash_password(data.password),
            created_by_id=created_by.id if created_by else None,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Created user {user.id} with role {user.role}")
        return user

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        filters = []
        if role:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active.is_(is_active))
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
                (User.first_name + " " + User.last_name).ilike(pattern),
            ))

        count_result = await self.db.execute(select(func.count(User.id)).where(*filters))
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(User)
            .where(*filters)
            .order_by(User.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def list_active_by_role(self, role: UserRole) -> List[User]:
        """Active engineers, drivers or workers for assignment pickers"""
        result = await self.db.execute(
            select(User)
            .where(User.role == role.value, User.is_active.is_(True))
            .order_by(User.first_name)
        )
        return list(result.scalars().all())

    async def update_user(self, user_id: UUID, data: UserUpdate) -> User:
        user = await self.get_user(user_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("email"):
            await self._ensure_email_available(update_data["email"], exclude_id=user.id)

        for field in REQUIRED_FIELDS:
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be empty")

        password = update_data.pop("password", None)
        if password:
            user.password_hash = AuthService.hash_password(password)

        if update_data.get("role") is not None:
            update_data["role"] = UserRole(update_data["role"]).value

        role = update_data.get("role") or user.role
        salary = update_data.get("salary", user.salary)
        if role in ADMIN_ROLES:
            update_data["salary"] = None
        else:
            try:
                check_salary(role, salary)
            except ValueError as e:
                raise ValidationError(str(e))

        for field, value in update_data.items():
            setattr(user, field, value)

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def deactivate_user(self, user_id: UUID, current_user: User) -> User:
        """
        Deactivate an account. Users cannot deactivate themselves.
        """
        if user_id == current_user.id:
            raise ValidationError("Cannot delete your own account")

        user = await self.get_user(user_id)
        user.is_active = False
        await self.db.commit()
        logger.info(f"Deactivated user {user_id} by {current_user.id}")
        return user

    async def set_image(self, user_id: UUID, kind: str, upload: FileUpload) -> User:
        """
        Upload a profile or signature image and store its URL on the user.

        Raises:
            ValidationError: If the image kind or file is invalid
            UpstreamFailure: If storage fails
        """
        if kind not in IMAGE_FIELDS:
            raise ValidationError(f"Unknown image type: {kind}")
        field, folder = IMAGE_FIELDS[kind]

        user = await self.get_user(user_id)
        try:
            stored = await self.storage.upload_file_async(
                upload.data, folder, upload.filename, upload.content_type,
                S3Service.IMAGE_MIME_TYPES,
            )
        except (InvalidFileTypeError, FileTooLargeError) as e:
            raise ValidationError(str(e))
        except S3ServiceError as e:
            raise UpstreamFailure(f"Failed to upload image: {e}")

        setattr(user, field, stored["url"])
        await self.db.commit()
        await self.db.refresh(user)
        return user
