"""User model"""

import enum
from sqlalchemy import Column, String, Float, Boolean, Text, JSON, ForeignKey, Uuid
from backoffice.models.base import BaseModel


class UserRole(str, enum.Enum):
    """Roles known to the back office"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    ENGINEER = "engineer"
    FINANCE = "finance"
    DRIVER = "driver"
    WORKER = "worker"


ADMIN_ROLES = (UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value)


class User(BaseModel):
    """
    User model covering office staff and field personnel.
    Workers and drivers carry a daily salary used for labor costing.
    """

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    phone_numbers = Column(JSON, nullable=False, default=list)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(
        String(50), default=UserRole.WORKER.value, nullable=False, index=True
    )
    salary = Column(Float, nullable=True)  # daily salary
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    profile_image = Column(Text, nullable=True)
    signature_image = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    account_number = Column(String(100), nullable=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
