"""Project model"""

import enum
from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    ForeignKey,
    Table,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from backoffice.database import Base
from backoffice.models.base import BaseModel


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status"""
    DRAFT = "draft"
    ESTIMATION_PREPARED = "estimation_prepared"
    QUOTATION_SENT = "quotation_sent"
    QUOTATION_APPROVED = "quotation_approved"
    QUOTATION_REJECTED = "quotation_rejected"
    LPO_RECEIVED = "lpo_received"
    TEAM_ASSIGNED = "team_assigned"
    WORK_STARTED = "work_started"
    IN_PROGRESS = "in_progress"
    WORK_COMPLETED = "work_completed"
    QUALITY_CHECK = "quality_check"
    CLIENT_HANDOVER = "client_handover"
    FINAL_INVOICE_SENT = "final_invoice_sent"
    PAYMENT_RECEIVED = "payment_received"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"
    PROJECT_CLOSED = "project_closed"


project_workers = Table(
    "project_workers",
    Base.metadata,
    Column("project_id", Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True),
)


class Project(BaseModel):
    """
    Project model representing a maintenance or fit-out job for a client.
    Status and progress are only changed through the lifecycle service.
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress_range"),
    )

    project_number = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    client_id = Column(
        Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )
    location = Column(String(255), nullable=False)
    building = Column(String(255), nullable=False)
    apartment_number = Column(String(100), nullable=False)
    status = Column(
        String(50), default=ProjectStatus.DRAFT.value, nullable=False, index=True
    )
    progress = Column(Integer, default=0, nullable=False, index=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    updated_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    assigned_engineer_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True
    )
    assigned_driver_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True
    )

    # Relationships (eager so async access never lazy-loads)
    client = relationship("Client", lazy="selectin")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    updated_by = relationship("User", foreign_keys=[updated_by_id], lazy="selectin")
    assigned_engineer = relationship(
        "User", foreign_keys=[assigned_engineer_id], lazy="selectin"
    )
    assigned_driver = relationship(
        "User", foreign_keys=[assigned_driver_id], lazy="selectin"
    )
    assigned_workers = relationship(
        "User", secondary=project_workers, lazy="selectin", order_by="User.first_name"
    )

    @property
    def full_location(self) -> str:
        return f"{self.location}, {self.building}, {self.apartment_number}"

    def __repr__(self):
        return f"<Project(id={self.id}, number={self.project_number}, status={self.status})>"
