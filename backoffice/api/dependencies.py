"""API dependencies for authentication and authorization"""

from typing import Optional
from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backoffice.database import get_db
from backoffice.exceptions import Forbidden, Unauthorized
from backoffice.models import User, UserRole
from backoffice.services.auth_service import AuthService


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        authorization: Authorization header with Bearer token
        db: Database session

    Returns:
        User object

    Raises:
        Unauthorized: If token is invalid or user not found
    """
    if not authorization:
        raise Unauthorized("Authorization header missing")

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized("Invalid authorization header format")

    claims = AuthService.read_token(parts[1])
    if not claims:
        raise Unauthorized("Invalid or expired token")

    # Get user from database
    result = await db.execute(select(User).where(User.id == claims.user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("User account is inactive")
    if user.role != claims.role.value:
        raise Unauthorized("Role changed since the token was issued")

    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        user: User = Depends(require_roles(UserRole.ADMIN, UserRole.SUPER_ADMIN))
    """
    allowed = {role.value for role in roles}

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise Forbidden(
                f"Role '{current_user.role}' is not allowed to perform this action"
            )
        return current_user

    return checker


class PageParams:
    """Common page/limit query parameters"""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        limit: int = Query(10, ge=1, le=100, description="Items per page"),
    ):
        self.page = page
        self.limit = limit


# Role groups used by the routers
ADMINS = (UserRole.SUPER_ADMIN, UserRole.ADMIN)
MANAGERS = ADMINS + (UserRole.ENGINEER,)
OFFICE_STAFF = MANAGERS + (UserRole.FINANCE,)
